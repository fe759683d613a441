"""
BeautifulSoup-based parser for dealer listing pages.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from app.domain.competitor_inventory import ScrapedVehicle
from app.scraping.parsing.base import ListingParser

UNKNOWN_LABEL = "Onbekend"

CARD_SELECTOR = ", ".join(
    [
        "article",
        "[data-vehicle]",
        "[class*='vehicle-item']",
        "[class*='car-item']",
        "li[class*='result']",
    ]
)
DETAIL_LINK_PATTERN = re.compile(r"/auto/|/details|/voertuig|/occasion", re.IGNORECASE)
TITLE_CLASS_PATTERN = re.compile(r"title", re.IGNORECASE)
IMAGE_PATTERN = re.compile(r"\.(?:jpe?g|png|webp)", re.IGNORECASE)

PRICE_PATTERNS = (
    re.compile(r"€\s*(\d[\d.,]*)"),
    re.compile(r"(\d{1,3}(?:\.\d{3})*(?:,\d{2})?)\s*€"),
)
YEAR_PATTERN = re.compile(r"\b(19\d{2}|20\d{2})\b")
MILEAGE_PATTERN = re.compile(r"(\d[\d.,]*)\s*km\b", re.IGNORECASE)
COLOR_PATTERN = re.compile(r"\b(?:kleur|colou?r)\s*:?\s*([^\W\d_]+)", re.IGNORECASE)

FUEL_TYPES = (
    ("benzine", "Benzine"),
    ("diesel", "Diesel"),
    ("elektrisch", "Elektrisch"),
    ("hybride", "Hybride"),
    ("lpg", "LPG"),
)
TRANSMISSIONS = (
    (re.compile(r"automaat", re.IGNORECASE), "Automaat"),
    (re.compile(r"handgeschakeld|manueel", re.IGNORECASE), "Handgeschakeld"),
)

NEXT_PAGE_HINTS = (
    re.compile(r'class="[^"]*\bnext\b[^"]*"', re.IGNORECASE),
    re.compile(r">\s*volgende\s*<", re.IGNORECASE),
    re.compile(r"›|»"),
)


class HTMLListingParser(ListingParser):
    """
    Heuristic extraction of vehicle cards from dealer storefront HTML.
    """

    def parse(self, markup: str, base_url: str) -> list[ScrapedVehicle]:
        if not markup:
            return []

        soup = BeautifulSoup(markup, "html.parser")
        vehicles: list[ScrapedVehicle] = []
        seen_urls: set[str] = set()
        for card in soup.select(CARD_SELECTOR):
            # Containers that wrap other cards are skipped; the inner cards are parsed.
            if card.select_one(CARD_SELECTOR) is not None:
                continue
            vehicle = self._parse_card(card, base_url=base_url)
            if vehicle is None or vehicle.external_url in seen_urls:
                continue
            seen_urls.add(vehicle.external_url)
            vehicles.append(vehicle)
        return vehicles

    def has_next_page(self, markup: str, current_page: int) -> bool:
        if not markup:
            return False

        next_page = current_page + 1
        numbered = (
            re.compile(rf"[?&](?:page|pagina|p)={next_page}(?!\d)", re.IGNORECASE),
            re.compile(rf"/page/{next_page}(?!\d)", re.IGNORECASE),
        )
        return any(pattern.search(markup) for pattern in (*numbered, *NEXT_PAGE_HINTS))

    def _parse_card(self, card: Tag, *, base_url: str) -> ScrapedVehicle | None:
        link = card.find("a", href=DETAIL_LINK_PATTERN)
        if link is None:
            return None
        external_url = urljoin(base_url, str(link.get("href", "")).strip())

        title = self._extract_title(card)
        if not title:
            return None
        parts = title.split()
        text = self._clean_text(card.get_text(" ", strip=True))

        return ScrapedVehicle(
            external_url=external_url,
            brand=parts[0] if parts else UNKNOWN_LABEL,
            model=" ".join(parts[1:3]) or UNKNOWN_LABEL,
            variant=" ".join(parts[3:]) or None,
            build_year=self._extract_year(text),
            mileage=self._extract_mileage(text),
            price=self._extract_price(text),
            fuel_type=self._extract_fuel_type(text),
            transmission=self._extract_transmission(text),
            color=self._extract_color(text),
            image_url=self._extract_image(card, base_url=base_url),
        )

    @classmethod
    def _extract_title(cls, card: Tag) -> str | None:
        heading = card.find(["h2", "h3"])
        if heading is not None:
            text = cls._clean_text(heading.get_text(" ", strip=True))
            if text:
                return text

        for node, attribute in (
            (card.find(attrs={"title": True}), "title"),
            (card.find("img", alt=True), "alt"),
        ):
            if node is None:
                continue
            value = cls._clean_text(str(node.get(attribute, "")))
            if value:
                return value

        labelled = card.find(class_=TITLE_CLASS_PATTERN)
        if labelled is not None:
            text = cls._clean_text(labelled.get_text(" ", strip=True))
            if text:
                return text
        return None

    @staticmethod
    def _extract_price(text: str) -> Decimal | None:
        for pattern in PRICE_PATTERNS:
            match = pattern.search(text)
            if match is None:
                continue
            normalized = match.group(1).replace(".", "").replace(",", ".").rstrip(".")
            try:
                price = Decimal(normalized)
            except InvalidOperation:
                continue
            if price > 0:
                return price
        return None

    @staticmethod
    def _extract_year(text: str) -> int | None:
        match = YEAR_PATTERN.search(text)
        return int(match.group(1)) if match else None

    @staticmethod
    def _extract_mileage(text: str) -> int | None:
        match = MILEAGE_PATTERN.search(text)
        if match is None:
            return None
        digits = re.sub(r"[.,]", "", match.group(1))
        return int(digits) if digits.isdigit() else None

    @staticmethod
    def _extract_fuel_type(text: str) -> str | None:
        lowered = text.lower()
        for keyword, label in FUEL_TYPES:
            if keyword in lowered:
                return label
        return None

    @staticmethod
    def _extract_transmission(text: str) -> str | None:
        for pattern, label in TRANSMISSIONS:
            if pattern.search(text):
                return label
        return None

    @staticmethod
    def _extract_color(text: str) -> str | None:
        match = COLOR_PATTERN.search(text)
        return match.group(1) if match else None

    @staticmethod
    def _extract_image(card: Tag, *, base_url: str) -> str | None:
        for attribute in ("src", "data-src"):
            for image in card.find_all("img"):
                value = str(image.get(attribute, "")).strip()
                if value and IMAGE_PATTERN.search(value):
                    return urljoin(base_url, value)
        return None

    @staticmethod
    def _clean_text(value: str) -> str:
        return re.sub(r"\s+", " ", value).strip()
