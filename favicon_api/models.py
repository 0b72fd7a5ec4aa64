from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class SourceTag(str, Enum):
    LINK_TAG = "link-tag"
    MANIFEST = "manifest"
    STATIC_FALLBACK = "fallback"
    EXTERNAL_FALLBACK = "fallback-api"
    OG_META = "og:image"
    TWITTER_META = "twitter:image"
    STRUCTURED_DATA = "schema.org"
    CUSTOM_DEFAULT = "custom-default"
    CACHED_DEFAULT = "default"


FALLBACK_SOURCES = frozenset(
    {SourceTag.EXTERNAL_FALLBACK, SourceTag.CUSTOM_DEFAULT, SourceTag.CACHED_DEFAULT}
)


@dataclass(frozen=True)
class Candidate:
    url: str
    score: int
    source: SourceTag
    width: Optional[int] = None
    height: Optional[int] = None
    format_hint: Optional[str] = None
    alt: Optional[str] = None


@dataclass(frozen=True)
class PageContext:
    """Per-request view of the fetched page, shared read-only by extractors."""

    final_url: str
    base_origin: str
    document: Any  # BeautifulSoup tree


@dataclass(frozen=True)
class PageMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    site_name: Optional[str] = None


@dataclass(frozen=True)
class ResolvedAsset:
    data: bytes
    format: str
    source: SourceTag
    origin_url: str

    @property
    def is_fallback(self) -> bool:
        return self.source in FALLBACK_SOURCES


@dataclass
class PageAnalysis:
    favicons: List[Candidate] = field(default_factory=list)
    og_images: List[Candidate] = field(default_factory=list)
    metadata: PageMetadata = field(default_factory=PageMetadata)


@dataclass
class DiscoveryResult:
    favicon: Optional[ResolvedAsset] = None
    og_image: Optional[ResolvedAsset] = None
    metadata: PageMetadata = field(default_factory=PageMetadata)
    timed_out: bool = False


class ImageInfo(BaseModel):
    url: str
    source_url: str
    width: int
    height: int
    format: str
    bytes: int
    source: str
    is_fallback: bool = False


class MetadataSchema(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    site_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class FaviconResult(BaseModel):
    favicon: ImageInfo
    og_image: Optional[ImageInfo] = None
    metadata: MetadataSchema = MetadataSchema()


class OGImageResult(BaseModel):
    url: str
    source_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    site_name: Optional[str] = None
    width: int
    height: int
    format: str
    bytes: int
    source: str
    is_fallback: bool = False
