"""Default configuration values for mediathumb."""

from __future__ import annotations

from typing import Final

# Lines rendered below the font name by fontmagick.  They cover letters,
# digits, punctuation, easily confused glyphs and the arrow/operator sequences
# that programming fonts usually turn into ligatures.
FONT_SAMPLE_LINES: Final[tuple[str, ...]] = (
    r"""                                                                   """,
    r"""ABC.DEF.GHI.JKL.MNO.PQRS.TUV.WXYZ abc.def.ghi.jkl.mno.pqrs.tuv.wxyz""",
    r"""1234567890 ,._-+= >< ¯-¬_ >~–÷+×< {}[]()<>`+-=$*/#_%^@\&|~?'" !,.;:""",
    r"""!iIlL17|¦ coO08BbDQ $5SZ2zsz 96G& dbqp E3 g9qCGQ vvwVVW <= != == >=""",
    r"""                                                                   """,
    r"""       -<< -< -<- <-- <--- <<- <- -> ->> --> ---> ->- >- >>-       """,
    r"""       =<< =< =<= <== <=== <<= <= => =>> ==> ===> =>= >= >>=       """,
    r"""       <-> <--> <---> <----> <=> <==> <===> <====> :: ::: __       """,
    r"""       <~~ </ </> /> ~~> == != /= ~= <> === !== !=== =/= =!=       """,
    r"""       <: := :- :+ <* <*> *> <| <|> |> <. <.> .> +: -: =: :>       """,
    r"""       (* *) /* */ [| |] {| |} ++ +++ \/ /\ |- -| <!-- <!---       """,
)

FONT_CANVAS_SIZE: Final[str] = "5000x3000"
FONT_GRAVITY: Final[str] = "center"
FONT_ANNOTATE_OFFSET: Final[str] = "+0+0"

# Exit codes reported when a tool cannot be spawned at all.  They follow the
# POSIX shell conventions so callers can treat them like any other failure.
EXIT_COMMAND_NOT_FOUND: Final[int] = 127
EXIT_NOT_EXECUTABLE: Final[int] = 126
EXIT_SPAWN_FAILED: Final[int] = 1
EXIT_SIGNAL_BASE: Final[int] = 128

# How long a blocked ``Task.result`` waits for queued exits before checking again.
TASK_POLL_INTERVAL: Final[float] = 0.05

SETTINGS_SCHEMA_ID: Final[str] = "mediathumb/settings@1"
SETTINGS_FILE_NAME: Final[str] = "settings.json"
APP_DIR_NAME: Final[str] = "mediathumb"
