import io

from PIL import Image

from favicon_api.services.image_processor import content_type_for, normalize_format, process_image

SVG = b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 48 24"><rect/></svg>'


def test_passthrough_keeps_original_bytes(png_bytes):
    processed = process_image(png_bytes)
    assert processed.data == png_bytes
    assert processed.format == "png"
    assert (processed.width, processed.height) == (16, 16)
    assert processed.bytes == len(png_bytes)


def test_same_format_is_not_reencoded(png_bytes):
    assert process_image(png_bytes, fmt="png").data == png_bytes


def test_resize(png_bytes):
    processed = process_image(png_bytes, size=64)
    assert (processed.width, processed.height) == (64, 64)
    with Image.open(io.BytesIO(processed.data)) as img:
        assert img.size == (64, 64)
        assert img.format == "PNG"


def test_convert_to_jpeg():
    rgba = io.BytesIO()
    Image.new("RGBA", (20, 10), (0, 0, 255, 128)).save(rgba, format="PNG")
    processed = process_image(rgba.getvalue(), fmt="jpeg")
    assert processed.format == "jpg"
    with Image.open(io.BytesIO(processed.data)) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"


def test_convert_to_ico(make_image):
    processed = process_image(make_image("PNG", (300, 300)), fmt="ico")
    assert processed.format == "ico"
    assert processed.data[:4] == b"\x00\x00\x01\x00"


def test_palette_image_is_converted(make_image):
    gif = make_image("GIF", (10, 10))
    processed = process_image(gif, size=20, fmt="png")
    assert processed.format == "png"
    assert (processed.width, processed.height) == (20, 20)


def test_svg_is_passed_through():
    processed = process_image(SVG, size=64, fmt="png")
    assert processed.data == SVG
    assert processed.format == "svg"
    assert (processed.width, processed.height) == (48, 24)


def test_svg_width_height_attributes():
    svg = b'<svg width="32" height="16" xmlns="http://www.w3.org/2000/svg"></svg>'
    assert (process_image(svg).width, process_image(svg).height) == (32, 16)


def test_content_types():
    assert content_type_for("jpeg") == "image/jpeg"
    assert content_type_for("ico") == "image/x-icon"
    assert content_type_for("svg") == "image/svg+xml"
    assert content_type_for("bmp") == "image/png"
    assert normalize_format("JPEG") == "jpg"
    assert normalize_format(None) is None
