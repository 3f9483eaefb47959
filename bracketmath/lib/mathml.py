'''
Renders Latex math code to MathML, using latex2mathml.

latex2mathml itself only takes the Latex code and a display mode. MathMLRenderer layers on the
options that the escaped-bracket extension passes through: error tolerance, strictness checks
against Latex-incompatible input, and the output format.
'''

from __future__ import annotations
from .progress import Progress

import latex2mathml.converter
import latex2mathml.exceptions

import html
import re
from typing import Callable, Union

NAME = 'bracketmath.mathml'  # For warning messages

OUTPUT_MATHML = 'mathml'

STRICT_IGNORE = 'ignore'
STRICT_WARN   = 'warn'
STRICT_ERROR  = 'error'

StrictSetting = Union[bool, str, Callable[[str, str, str], Union[bool, str, None]]]

# Every exception latex2mathml raises for malformed Latex.
LATEX_ERRORS = tuple(
    obj for obj in vars(latex2mathml.exceptions).values()
    if isinstance(obj, type) and issubclass(obj, Exception) and obj is not Exception
)

ENVIRONMENT_RE = re.compile(r'\\(?P<kind>begin|end)\s*\{[^}]*\}|(?P<newline>\\\\|\\newline(?![A-Za-z]))')


class StrictModeError(Exception):
    def __init__(self, error_code: str, msg: str, token: str):
        super().__init__(f"LaTeX-incompatible input and strict mode is set to 'error': {msg} [{error_code}]")
        self.error_code = error_code
        self.token = token


def find_nonstrict(latex: str, display_mode: bool):
    '''
    Yields (error_code, message, token) for each construct in 'latex' that works here but is not
    valid Latex.
    '''
    for ch in latex:
        if ch.isalpha() and not ch.isascii():
            yield ('unicodeTextInMathMode',
                   f'Unicode text character "{ch}" used in math mode',
                   ch)

    if display_mode:
        depth = 0
        for match in ENVIRONMENT_RE.finditer(latex):
            kind = match.group('kind')
            if kind == 'begin':
                depth += 1
            elif kind == 'end':
                depth = max(0, depth - 1)
            elif depth == 0:
                yield ('newLineInDisplayMode',
                       'In LaTeX, \\\\ or \\newline does nothing in display mode',
                       match.group('newline'))


class MathMLRenderer:
    def __init__(self, progress: Progress, error_color: str = '#cc0000'):
        self.progress = progress
        self.error_color = error_color

    def render(self, latex: str, *,
                     display_mode: bool = False,
                     strict: StrictSetting = STRICT_IGNORE,
                     throw_on_error: bool = False,
                     output: str = OUTPUT_MATHML) -> str:

        if output != OUTPUT_MATHML:
            raise ValueError(f'Unsupported output format "{output}"; only "{OUTPUT_MATHML}" is available')

        try:
            for error_code, msg, token in find_nonstrict(latex, display_mode):
                self.report_nonstrict(strict, error_code, msg, token)

            return latex2mathml.converter.convert(latex,
                                                  display = 'block' if display_mode else 'inline')

        except (StrictModeError, *LATEX_ERRORS) as e:
            if throw_on_error:
                raise
            return self.error_markup(latex, e)


    def report_nonstrict(self, strict: StrictSetting, error_code: str, msg: str, token: str):
        if callable(strict):
            strict = strict(error_code, msg, token) or STRICT_IGNORE

        if strict is True:
            strict = STRICT_ERROR
        elif strict is False:
            strict = STRICT_IGNORE

        if strict == STRICT_ERROR:
            raise StrictModeError(error_code, msg, token)

        elif strict == STRICT_WARN:
            self.progress.warning(
                NAME,
                msg = f"LaTeX-incompatible input and strict mode is set to 'warn': {msg} [{error_code}]")

        elif strict != STRICT_IGNORE:
            self.progress.warning(
                NAME,
                msg = f"LaTeX-incompatible input and strict mode is set to unrecognized '{strict}': "
                      f"{msg} [{error_code}]")


    def error_markup(self, latex: str, error: Exception) -> str:
        title = html.escape(f'{error.__class__.__name__}: {error}', quote = True)
        return (f'<span class="math-error" title="{title}" style="color:{self.error_color}">'
                f'{html.escape(latex, quote = False)}</span>')
