import logging
from datetime import datetime, timezone
from typing import Literal, Optional
from urllib.parse import urlencode, urlparse

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from favicon_api.config import AppConfig, get_config
from favicon_api.errors import CustomDefaultFailed, NoAssetFound
from favicon_api.models import FaviconResult, ImageInfo, MetadataSchema, OGImageResult, ResolvedAsset
from favicon_api.services.discovery import resolve_favicon, resolve_og_image
from favicon_api.services.fallback import apply_fallback_cascade
from favicon_api.services.image_processor import content_type_for, process_image
from favicon_api.services.page_fetcher import normalize_target_url

router = APIRouter()

logger = logging.getLogger(__name__)

ImageFormat = Literal["png", "jpg", "jpeg", "ico", "webp", "svg"]
ResponseType = Literal["image", "json"]


def get_app_config() -> AppConfig:
    return get_config()


def _api_url(request: Request, prefix: str, url: str, size, fmt, default=None) -> str:
    params = {k: v for k, v in (("size", size), ("format", fmt), ("default", default)) if v}
    api_url = f"{str(request.base_url).rstrip('/')}/{prefix}{url}"
    return f"{api_url}?{urlencode(params)}" if params else api_url


def _error(status_code: int, message: str, response: ResponseType) -> Response:
    if response == "json" or status_code >= 500:
        return JSONResponse({"error": message}, status_code=status_code)
    return Response(status_code=status_code)


def _image_info(asset: ResolvedAsset, api_url: str, size, fmt) -> ImageInfo:
    processed = process_image(asset.data, size, fmt)
    return ImageInfo(
        url=api_url,
        source_url=asset.origin_url,
        width=processed.width,
        height=processed.height,
        format=processed.format,
        bytes=processed.bytes,
        source=asset.source.value,
        is_fallback=asset.is_fallback,
    )


def _image_response(asset: ResolvedAsset, size, fmt) -> Response:
    processed = process_image(asset.data, size, fmt)
    return Response(content=processed.data, media_type=content_type_for(processed.format))


def _fallback_only(request: Request, response: ResponseType, size, fmt, default, config: AppConfig):
    # Query parameters without a domain: answer with the fallback image
    try:
        asset = apply_fallback_cascade(config, default_url=default)
        if response == "image":
            return _image_response(asset, size, fmt)
        info = _image_info(asset, _api_url(request, "", "", size, fmt, default), size, fmt)
        return FaviconResult(favicon=info)
    except NoAssetFound as e:
        return _error(404, str(e), response)
    except CustomDefaultFailed as e:
        logger.error(f"Error fetching default image: {e}")
        return _error(500, "Failed to fetch default image", response)
    except Exception as e:
        logger.error(f"Error processing root request with query params: {str(e)}", exc_info=True)
        return _error(500, "Internal server error", response)


def _check_target(url: str) -> Optional[str]:
    if not urlparse(normalize_target_url(url)).hostname:
        return "Invalid URL"
    return None


@router.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/og/{url:path}")
def get_og_image(
    url: str,
    request: Request,
    response: ResponseType = "image",
    size: Optional[int] = Query(None, ge=1, le=1024),
    format: Optional[ImageFormat] = None,
    default: Optional[str] = None,
    skipFallback: bool = False,
    config: AppConfig = Depends(get_app_config),
):
    if error := _check_target(url):
        return _error(400, error, "json")
    try:
        result = resolve_og_image(url, config, default_url=default, skip_fallback=skipFallback)
        image = result.og_image
        if response == "image":
            return _image_response(image, size, format)

        info = _image_info(image, _api_url(request, "og/", url, size, format), size, format)
        return OGImageResult(
            url=info.url,
            source_url=info.source_url,
            title=result.metadata.title,
            description=result.metadata.description,
            site_name=result.metadata.site_name,
            width=info.width,
            height=info.height,
            format=info.format,
            bytes=info.bytes,
            source=info.source,
            is_fallback=info.is_fallback,
        )
    except NoAssetFound as e:
        logger.info(f"No OG image for {url}: {e}")
        return _error(404, str(e), response)
    except CustomDefaultFailed as e:
        logger.error(f"Error fetching default image: {e}")
        return _error(500, "Failed to fetch default image", response)
    except Exception as e:
        logger.error(f"Error processing OG image request for {url}: {str(e)}", exc_info=True)
        return _error(500, "Internal server error", response)


@router.get("/{url:path}")
def get_favicon(
    url: str,
    request: Request,
    response: ResponseType = "image",
    size: Optional[int] = Query(None, ge=1, le=1024),
    format: Optional[ImageFormat] = None,
    default: Optional[str] = None,
    skipFallback: bool = False,
    config: AppConfig = Depends(get_app_config),
):
    if not url:
        if not request.query_params:
            return _error(400, "Domain parameter is required", "json")
        return _fallback_only(request, response, size, format, default, config)
    if error := _check_target(url):
        return _error(400, error, "json")
    try:
        result = resolve_favicon(
            url,
            config,
            size=size,
            default_url=default,
            skip_fallback=skipFallback,
            include_og=response == "json",
        )
        if response == "image":
            return _image_response(result.favicon, size, format)

        favicon_info = _image_info(
            result.favicon, _api_url(request, "", url, size, format, default), size, format
        )
        og_info = None
        if result.og_image is not None:
            og_info = _image_info(
                result.og_image, _api_url(request, "og/", url, size, format), size, format
            )
        return FaviconResult(
            favicon=favicon_info,
            og_image=og_info,
            metadata=MetadataSchema.model_validate(result.metadata),
        )
    except NoAssetFound as e:
        logger.info(f"No favicon for {url}: {e}")
        return _error(404, str(e), response)
    except CustomDefaultFailed as e:
        logger.error(f"Error fetching default image: {e}")
        return _error(500, "Failed to fetch default image", response)
    except Exception as e:
        logger.error(f"Error processing favicon request for {url}: {str(e)}", exc_info=True)
        return _error(500, "Internal server error", response)
