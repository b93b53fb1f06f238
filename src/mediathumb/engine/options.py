"""Typed option records for the task generators.

Every generator owns one frozen record whose field defaults form the tool's
default table.  Callers hand in a partial mapping and :func:`merge_options`
fills the gaps from the defaults without ever replacing a value the caller
supplied.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Final, Literal, Mapping, Optional, TypeVar, Union

Scalar = Union[str, int, float]
Interlace = Literal["Line", "None", "Partition", "Plane"]


def _frozen_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class ToolOptions:
    """Base class for per-tool option records.

    ``extras`` keeps caller keys that the tool does not know about so that the
    merged bag never silently drops anything.
    """

    extras: Mapping[str, Any] = field(default_factory=_frozen_mapping, kw_only=True)


@dataclass(frozen=True)
class MagickOptions(ToolOptions):
    """Options for descaling raster and animated images with ``convert``."""

    quality: str = "20%"
    blurred: Scalar = "0.06"
    interlace: Interlace = "Plane"
    frame: str = "[0]"


@dataclass(frozen=True)
class FontMagickOptions(ToolOptions):
    """Options for rendering a font specimen with ``convert``.

    ``text_lines`` left as ``None`` renders the font name followed by
    :data:`mediathumb.config.FONT_SAMPLE_LINES`.
    """

    fill: str = "#000000"
    background: str = "#FFFFFF"
    pointsize: Scalar = "100"
    text_lines: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class FfmpegOptions(ToolOptions):
    """Stream map specifiers and verbosity for ``ffmpeg``."""

    map_start: str = "0:v"
    map_finish: str = "0:V?"
    loglevel: Scalar = "8"


@dataclass(frozen=True)
class FfmpegThumbnailerOptions(ToolOptions):
    size: Scalar = "0"
    time: str = "10%"


@dataclass(frozen=True)
class PdfToppmOptions(ToolOptions):
    """Page range and fit box for ``pdftoppm``.  ``-1`` leaves an axis free."""

    scale_to_x: Scalar = "-1"
    scale_to_y: Scalar = "-1"
    first_page: Scalar = "1"
    last_page: Scalar = "1"


@dataclass(frozen=True)
class EpubThumbnailerOptions(ToolOptions):
    size: Scalar = "2000"


@dataclass(frozen=True)
class EbookMetaOptions(ToolOptions):
    """``ebook-meta`` takes no tunables; the record only carries extras."""


MAGICK_DEFAULTS: Final[MagickOptions] = MagickOptions()
FONTMAGICK_DEFAULTS: Final[FontMagickOptions] = FontMagickOptions()
FFMPEG_DEFAULTS: Final[FfmpegOptions] = FfmpegOptions()
FFMPEGTHUMBNAILER_DEFAULTS: Final[FfmpegThumbnailerOptions] = FfmpegThumbnailerOptions()
PDFTOPPM_DEFAULTS: Final[PdfToppmOptions] = PdfToppmOptions()
EPUBTHUMBNAILER_DEFAULTS: Final[EpubThumbnailerOptions] = EpubThumbnailerOptions()
EBOOKMETA_DEFAULTS: Final[EbookMetaOptions] = EbookMetaOptions()

TOOL_DEFAULTS: Final[Mapping[str, ToolOptions]] = MappingProxyType(
    {
        "magick": MAGICK_DEFAULTS,
        "fontmagick": FONTMAGICK_DEFAULTS,
        "ffmpeg": FFMPEG_DEFAULTS,
        "ffmpegthumbnailer": FFMPEGTHUMBNAILER_DEFAULTS,
        "pdftoppm": PDFTOPPM_DEFAULTS,
        "epubthumbnailer": EPUBTHUMBNAILER_DEFAULTS,
        "ebookmeta": EBOOKMETA_DEFAULTS,
    }
)

OptionsT = TypeVar("OptionsT", bound=ToolOptions)


def merge_options(
    defaults: OptionsT,
    overrides: Mapping[str, Any] | OptionsT | None = None,
) -> OptionsT:
    """Return *defaults* with every value supplied in *overrides* kept.

    Keys set to ``None`` count as missing.  Keys that are not fields of the
    record are collected in ``extras`` unchanged.  Sequences are stored as
    tuples so the merged record stays immutable.
    """

    if overrides is None:
        return defaults
    if isinstance(overrides, type(defaults)):
        return overrides

    known = {item.name for item in fields(defaults) if item.name != "extras"}
    changes: dict[str, Any] = {}
    extras = dict(defaults.extras)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, list):
            value = tuple(value)
        if key in known:
            changes[key] = value
        else:
            extras[key] = value
    return replace(defaults, extras=MappingProxyType(extras), **changes)


def options_as_dict(options: ToolOptions) -> dict[str, Any]:
    """Flatten *options* into a plain bag, extras included."""

    bag = {item.name: getattr(options, item.name) for item in fields(options) if item.name != "extras"}
    for key, value in options.extras.items():
        bag.setdefault(key, value)
    return bag


def as_arg(value: Scalar) -> str:
    """Serialise an option value the way the command line expects it."""

    return value if isinstance(value, str) else str(value)
