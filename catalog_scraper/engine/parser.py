"""Catalog page parsing: search result candidates and detail records."""

from __future__ import annotations

import re
from typing import Any, Protocol

import structlog
from selectolax.lexbor import LexborHTMLParser, LexborNode

from .models import Candidate, DetailRecord

_MANUFACTURER_PATTERN = re.compile(r"(.+?)\s*#(.+)")

DEFAULT_IMAGE_HOST = "imgcdn.mckesson.com"
PLACEHOLDER_IMAGE = (
    "https://cdn.prod.website-files.com/68af9060d585e89323ce4b59/"
    "6993fffa8ae6f351bcbe96fe_ndr_placeholder_white.png"
)

logger = structlog.get_logger("catalog_scraper.parser")


class CatalogParser(Protocol):
    """Pure page-structure extraction used by the resolver."""

    def parse_search(self, body: str, key: str) -> list[Candidate]:
        """Return search candidates in page order; empty when nothing matched."""

    def parse_detail(self, body: str, url: str) -> DetailRecord:
        """Return the structured detail record for a product page."""


def _text(node: LexborNode | None) -> str:
    if node is None:
        return ""
    return " ".join(node.text(separator=" ", strip=True).split())


def _has_class(node: LexborNode, name: str) -> bool:
    return name in (node.attributes.get("class") or "").split()


def _header_id(node: LexborNode | None) -> str:
    if node is None:
        return ""
    value = node.attributes.get("id")
    if value:
        return value.strip()
    return _text(node).replace("#", "").strip()


def _manufacturer_from_header(items: list[LexborNode]) -> tuple[str | None, str | None]:
    """Find the ``Manufacturer #MFR123`` entry among product header items."""

    manufacturer = None
    number = None
    for item in items:
        if _has_class(item, "product-header-id"):
            continue
        text = _text(item)
        if "#" not in text:
            continue
        match = _MANUFACTURER_PATTERN.match(text)
        if match:
            manufacturer = match.group(1).strip()
            number = match.group(2).strip()
    return manufacturer, number


class HtmlCatalogParser:
    """Selectolax based parser for the catalog's server-rendered pages.

    Unexpected page structure never raises: missing fields degrade to
    empty values so the resolver can still report the key. Gallery images are
    kept only when served from ``image_host``; a page without any gets
    ``placeholder_image``.
    """

    def __init__(
        self,
        *,
        image_host: str = DEFAULT_IMAGE_HOST,
        placeholder_image: str = PLACEHOLDER_IMAGE,
    ) -> None:
        self.image_host = image_host
        self.placeholder_image = placeholder_image

    def parse_search(self, body: str, key: str) -> list[Candidate]:
        tree = LexborHTMLParser(body)
        product_list = tree.css_first(".product-item-list.js-product-item-list")
        if product_list is None:
            logger.debug("search_list_missing", key=key)
            return []

        candidates: list[Candidate] = []
        for item in product_list.css(".product-item"):
            identifier = _header_id(item.css_first(".product-header-id"))
            if not identifier:
                continue
            link = item.css_first(".item-title a")
            locator = ((link.attributes.get("href") if link else None) or "").strip()
            manufacturer, number = _manufacturer_from_header(item.css(".product-header li"))
            candidates.append(
                Candidate(
                    identifier=identifier,
                    locator=locator,
                    secondary_identifier=number,
                    title=_text(link),
                    manufacturer=manufacturer,
                )
            )
        logger.debug("search_parsed", key=key, candidates=len(candidates))
        return candidates

    def parse_detail(self, body: str, url: str) -> DetailRecord:
        tree = LexborHTMLParser(body)
        manufacturer, manufacturer_number = _manufacturer_from_header(
            tree.css(".product-header li")
        )
        images, original_images = self._gallery_images(tree)
        specifications = self._specifications(tree)
        spec_lookup = {entry["key"]: entry["value"] for entry in specifications}

        record: dict[str, Any] = {
            "productId": _header_id(tree.css_first(".product-header-id")),
            "manufacturerNumber": manufacturer_number or spec_lookup.get("Manufacturer #", ""),
            "title": _text(tree.css_first(".prod-title")),
            "invoiceTitle": _text(tree.css_first(".prod-invoice-title")) or None,
            "brand": spec_lookup.get("Brand"),
            "manufacturer": manufacturer or spec_lookup.get("Manufacturer", ""),
            "imageUrl": images[0],
            "images": images,
            "originalImages": original_images,
            "specifications": specifications,
            "features": self._features(tree),
            "productUrl": url,
        }
        logger.debug(
            "detail_parsed",
            url=url,
            product_id=record["productId"],
            specifications=len(specifications),
            features=len(record["features"]),
            images=len(images),
        )
        return record

    def _gallery_images(self, tree: LexborHTMLParser) -> tuple[list[str], list[str]]:
        images: list[str] = []
        originals: list[str] = []
        for zoom in tree.css(".image-gallery.gallery .image-zoom"):
            img = zoom.css_first("img")
            src = (img.attributes.get("src") if img else None) or ""
            if self.image_host in src and src not in images:
                images.append(src)
            anchor = zoom.css_first("a")
            href = (anchor.attributes.get("href") if anchor else None) or ""
            if self.image_host in href and href not in originals:
                originals.append(href)
        if not images:
            images.append(self.placeholder_image)
        return images, originals

    @staticmethod
    def _specifications(tree: LexborHTMLParser) -> list[dict[str, str]]:
        def collect(rows: list[LexborNode]) -> list[dict[str, str]]:
            entries = []
            for row in rows:
                label = _text(row.css_first("th"))
                value = _text(row.css_first("td"))
                if label and value:
                    entries.append({"key": label, "value": value})
            return entries

        specs = collect(tree.css("#specifications table tr"))
        if not specs:
            specs = collect(tree.css("table.table tr"))
        return specs

    @staticmethod
    def _features(tree: LexborHTMLParser) -> list[str]:
        items: list[LexborNode] = []
        anchor = tree.css_first("#specifications #features")
        if anchor is not None and anchor.parent is not None:
            items = anchor.parent.css(".product-features li")
        if not items:
            items = tree.css("#specifications .product-features li")
        features = []
        for item in items:
            if _has_class(item, "more"):
                continue
            text = _text(item)
            if text and not text.startswith("More"):
                features.append(text)
        return features


__all__ = ["CatalogParser", "DEFAULT_IMAGE_HOST", "HtmlCatalogParser", "PLACEHOLDER_IMAGE"]
