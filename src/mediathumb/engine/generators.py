"""Task generators, one per external media tool.

Each generator merges the caller's options over the tool defaults, builds the
tool's argument vector and hands it to :func:`primed_task`.  All of them
return immediately with a started :class:`~mediathumb.engine.task.Task`;
completion is reported through ``on_exit``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ..config import FONT_ANNOTATE_OFFSET, FONT_CANVAS_SIZE, FONT_GRAVITY, FONT_SAMPLE_LINES
from .launcher import primed_task
from .options import (
    EPUBTHUMBNAILER_DEFAULTS,
    FFMPEG_DEFAULTS,
    FFMPEGTHUMBNAILER_DEFAULTS,
    FONTMAGICK_DEFAULTS,
    MAGICK_DEFAULTS,
    PDFTOPPM_DEFAULTS,
    as_arg,
    merge_options,
)
from .task import ExitCallback, ProcessRunner, Task

PathArg = Union[str, "os.PathLike[str]"]
OptionsArg = Optional[Mapping[str, Any]]


def strip_extension(path: PathArg) -> str:
    """Return *path* without its last extension (``a.b.jpg`` -> ``a.b``)."""

    root, _ = os.path.splitext(os.fspath(path))
    return root


def font_display_name(font_path: PathArg) -> str:
    """Return the font file's base name without extension."""

    return Path(os.fspath(font_path)).stem


def magick(
    input_path: PathArg,
    output_path: PathArg,
    options: OptionsArg = None,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """Descale an image, GIFs included, by stripping, blurring and lowering quality.

    The frame selector is appended to the input path without a separator,
    which is ImageMagick's own syntax for picking one frame (``anim.gif[0]``).
    """

    opts = merge_options(MAGICK_DEFAULTS, options)
    return primed_task(
        "convert",
        [
            "-strip",
            "-interlace",
            as_arg(opts.interlace),
            "-gaussian-blur",
            as_arg(opts.blurred),
            "-quality",
            as_arg(opts.quality),
            os.fspath(input_path) + as_arg(opts.frame),
            os.fspath(output_path),
        ],
        on_exit,
        runner=runner,
    )


def fontmagick(
    font_path: PathArg,
    output_path: PathArg,
    options: OptionsArg = None,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """Render a specimen of *font_path* centred on a fixed canvas."""

    opts = merge_options(FONTMAGICK_DEFAULTS, options)
    text_lines = opts.text_lines
    if text_lines is None:
        text_lines = (font_display_name(font_path), *FONT_SAMPLE_LINES)
    elif isinstance(text_lines, str):
        text_lines = (text_lines,)

    return primed_task(
        "convert",
        [
            "-strip",
            "-size",
            FONT_CANVAS_SIZE,
            "xc:" + as_arg(opts.background),
            "-gravity",
            FONT_GRAVITY,
            "-pointsize",
            as_arg(opts.pointsize),
            "-font",
            os.fspath(font_path),
            "-fill",
            as_arg(opts.fill),
            "-annotate",
            FONT_ANNOTATE_OFFSET,
            "\n".join(text_lines),
            "-flatten",
            os.fspath(output_path),
        ],
        on_exit,
        runner=runner,
    )


def ffmpeg(
    input_path: PathArg,
    output_path: PathArg,
    options: OptionsArg = None,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """Copy the mapped video stream(s), e.g. an embedded cover, without re-encoding.

    See <https://trac.ffmpeg.org/wiki/Map> for the map specifier syntax.
    """

    opts = merge_options(FFMPEG_DEFAULTS, options)
    return primed_task(
        "ffmpeg",
        [
            "-i",
            os.fspath(input_path),
            "-map",
            as_arg(opts.map_start),
            "-map",
            as_arg(opts.map_finish),
            "-c",
            "copy",
            "-v",
            as_arg(opts.loglevel),
            os.fspath(output_path),
        ],
        on_exit,
        runner=runner,
    )


def ffmpegthumbnailer(
    input_path: PathArg,
    output_path: PathArg,
    options: OptionsArg = None,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """Generate a thumbnail from a video file."""

    opts = merge_options(FFMPEGTHUMBNAILER_DEFAULTS, options)
    return primed_task(
        "ffmpegthumbnailer",
        [
            "-i", os.fspath(input_path),
            "-o", os.fspath(output_path),
            "-s", as_arg(opts.size),
            "-t", as_arg(opts.time),
        ],
        on_exit,
        runner=runner,
    )


def pdftoppm(
    pdf_path: PathArg,
    output_path: PathArg,
    options: OptionsArg = None,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """Rasterise a page range of a PDF into a single JPEG.

    ``pdftoppm`` appends ``.jpg`` to the name it is given, so the extension of
    *output_path* is stripped before it is passed on.
    """

    opts = merge_options(PDFTOPPM_DEFAULTS, options)
    return primed_task(
        "pdftoppm",
        [
            "-f", as_arg(opts.first_page),
            "-l", as_arg(opts.last_page),
            "-scale-to-x", as_arg(opts.scale_to_x),
            "-scale-to-y", as_arg(opts.scale_to_y),
            "-singlefile",
            "-jpeg",
            "-tiffcompression",
            "jpeg",
            os.fspath(pdf_path),
            strip_extension(output_path),
        ],
        on_exit,
        runner=runner,
    )


def epubthumbnailer(
    input_path: PathArg,
    output_path: PathArg,
    options: OptionsArg = None,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    opts = merge_options(EPUBTHUMBNAILER_DEFAULTS, options)
    return primed_task(
        "epub-thumbnailer",
        [os.fspath(input_path), os.fspath(output_path), as_arg(opts.size)],
        on_exit,
        runner=runner,
    )


def ebookmeta(
    input_path: PathArg,
    output_path: PathArg,
    options: OptionsArg = None,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """Extract the embedded cover of an e-book as-is.  *options* is unused."""

    return primed_task(
        "ebook-meta",
        ["--get-cover", os.fspath(input_path), os.fspath(output_path)],
        on_exit,
        runner=runner,
    )


def zipinfo(
    input_path: PathArg,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """List the members of a ZIP archive, one per line.

    This is the only generator that captures output: the listing arrives in
    ``TaskResult.stdout``.
    """

    return primed_task(
        "zipinfo",
        ["-1", os.fspath(input_path)],
        on_exit,
        capture_output=True,
        runner=runner,
    )


def unzip(
    output_directory: PathArg,
    zip_path: PathArg,
    zip_item: str,
    on_exit: Optional[ExitCallback] = None,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Task:
    """Extract the single member *zip_item* of *zip_path* into *output_directory*."""

    return primed_task(
        "unzip",
        ["-d", os.fspath(output_directory), os.fspath(zip_path), zip_item],
        on_exit,
        runner=runner,
    )
