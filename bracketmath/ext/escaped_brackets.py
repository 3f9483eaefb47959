'''
# Escaped Brackets Extension

The 'bracketmath.escaped_brackets' extension recognises Latex math written between escaped
brackets, at any point within a paragraph (except inside `...`):

*   '\\(...\\)' for inline math; and
*   '\\[...\\]' for display math.

The Latex code between the delimiters is converted to MathML with latex2mathml, and the resulting
<math> element is inserted into the output document verbatim.

The set of recognised delimiters is configurable (the 'delimiters' option), as an ordered list of
(left, right, display) triples. At any given position, the first pair whose left delimiter matches,
and whose right delimiter can be found later in the same block of text, wins. There is no nesting
and no escaping within the math code; the first occurrence of the right delimiter ends it.

A left delimiter preceded by an odd number of backslashes is escaped, and left alone. So '\\\\(x\\)'
is a literal backslash, followed by '(x\\)', which Python Markdown then processes as normal.

If math code cannot be rendered at all, the error is reported (via the 'progress' option) and the
original text is left in place.
'''

from __future__ import annotations
from bracketmath.lib.mathml import MathMLRenderer, StrictSetting
from bracketmath.lib.progress import Progress

import markdown
from markdown.inlinepatterns import InlineProcessor

from dataclasses import dataclass
import re
from typing import Iterable, List, Optional, Tuple

NAME = 'bracketmath.escaped_brackets'  # For error messages

# Ahead of Python Markdown's code spans (190) and backslash escapes (180), so that neither alters
# the math before this rule sees it.
HEAD_PRIORITY = 200

# A run of backticks, and the same run closing it, where the opening run isn't escaped.
CODE_SPAN_RE = re.compile(r'(?<!\\)(?:\\\\)*(?P<ticks>`+).+?(?<!`)(?P=ticks)(?!`)', re.DOTALL)


@dataclass(frozen = True)
class Delimiter:
    left: str
    right: str
    display: bool


DEFAULT_DELIMITERS = [
    Delimiter('\\[', '\\]', True),
    Delimiter('\\(', '\\)', False),
]


def normalise_delimiters(delimiters: Iterable) -> Tuple[Delimiter, ...]:
    '''Accepts Delimiter objects, {'left':..., 'right':..., 'display':...} dicts, or 3-tuples.'''
    result = []
    for d in delimiters:
        if isinstance(d, Delimiter):
            result.append(d)
        elif isinstance(d, dict):
            result.append(Delimiter(d['left'], d['right'], bool(d['display'])))
        else:
            left, right, display = d
            result.append(Delimiter(left, right, bool(display)))
    return tuple(result)


@dataclass(frozen = True)
class MathSpan:
    delimiter: Delimiter
    start: int
    content_start: int
    content_end: int
    end: int

    def content(self, src: str) -> str:
        return src[self.content_start:self.content_end]


def find_span(src: str,
              start: int,
              pos_max: int,
              delimiters: Iterable[Delimiter]) -> Optional[MathSpan]:
    '''
    Finds the delimited math span beginning at 'start', if any, without the right delimiter
    extending past 'pos_max'.
    '''
    for delimiter in delimiters:
        if not delimiter.left or not src.startswith(delimiter.left, start, pos_max):
            continue

        content_start = start + len(delimiter.left)
        content_end = src.find(delimiter.right, content_start, pos_max)
        if content_end == -1:
            # Unterminated; a later pair might still match here.
            continue

        return MathSpan(delimiter = delimiter,
                        start = start,
                        content_start = content_start,
                        content_end = content_end,
                        end = content_end + len(delimiter.right))

    return None


class InlineState:
    '''
    The parts of the inline parsing state that EscapedBracketRule reads and writes: the source
    text, a cursor that only moves forward, the end of the region being scanned, and a way to emit
    raw markup.
    '''

    def __init__(self, md: markdown.Markdown, src: str, pos: int, pos_max: int):
        self.src = src
        self.pos = pos
        self.pos_max = pos_max
        self.tokens: List[str] = []
        self._md = md

    def push_html(self, markup: str):
        self.tokens.append(self._md.htmlStash.store(markup))


class EscapedBracketRule:
    def __init__(self,
                 delimiters: Iterable[Delimiter],
                 strict: StrictSetting,
                 renderer: MathMLRenderer,
                 progress: Progress):
        self.delimiters = normalise_delimiters(delimiters)
        self.strict = strict
        self.renderer = renderer
        self.progress = progress

    def probe(self, state: InlineState) -> bool:
        return find_span(state.src, state.pos, state.pos_max, self.delimiters) is not None

    def commit(self, state: InlineState) -> bool:
        span = find_span(state.src, state.pos, state.pos_max, self.delimiters)
        if span is None:
            return False

        latex = span.content(state.src)
        try:
            markup = self.renderer.render(latex,
                                          display_mode = span.delimiter.display,
                                          strict = self.strict,
                                          throw_on_error = False,
                                          output = 'mathml')
        except Exception as e:
            self.progress.error(NAME, exception = e, code = latex)
            return False

        state.push_html(markup)
        state.pos = span.end
        return True


class EscapedBracketInlineProcessor(InlineProcessor):
    def __init__(self, rule: EscapedBracketRule, md = None):
        lefts = [re.escape(d.left) for d in rule.delimiters if d.left]
        if lefts:
            # Skip over pairs of backslashes, which are themselves escapes.
            pattern = rf'(?<!\\)(?:\\\\)*(?P<left>{"|".join(lefts)})'
        else:
            pattern = r'(?!)'

        super().__init__(pattern, md)
        self.rule = rule
        self._exhausted = None

    def reset(self):
        self._exhausted = None

    def handleMatch(self, m, data):
        # When we decline a match, Python Markdown resumes its search at an offset that can
        # overshoot later candidates. So we walk the remaining candidates ourselves, and then
        # remember that this text has none left. Python Markdown only searches the same 'data'
        # object again with a larger start index, so an identity check is enough; any change to
        # the text produces a new string.
        if data is self._exhausted:
            return None, None, None

        code_spans = find_code_spans(data)
        while m:
            start = m.start('left')
            covering = next((span for span in code_spans if span[0] <= start < span[1]), None)
            if covering:
                m = self.compiled_re.search(data, covering[1])
                continue

            state = InlineState(self.md, data, start, len(data))
            if self.rule.commit(state):
                return ''.join(state.tokens), start, state.pos

            m = self.compiled_re.search(data, start + 1)

        self._exhausted = data
        return None, None, None


def find_code_spans(data: str) -> List[Tuple[int, int]]:
    '''
    Returns the (start, end) ranges of `...` code spans, scanning left to right, so that math
    delimiters inside them can be ignored.
    '''
    spans = []
    pos = 0
    while match := CODE_SPAN_RE.search(data, pos):
        spans.append((match.start('ticks'), match.end()))
        pos = match.end()
    return spans


def priority_after(registry: markdown.util.Registry, name: str) -> Optional[float]:
    '''
    Returns a priority that places a new item immediately after the named item, in the registry's
    processing order, or None if that can't be determined.
    '''
    # Registry has no public API for priorities.
    items = sorted(getattr(registry, '_priority', []),
                   key = lambda item: item.priority,
                   reverse = True)
    names = [getattr(item, 'name', None) for item in items]
    if name not in names:
        return None

    index = names.index(name)
    upper = items[index].priority
    lower = items[index + 1].priority if index + 1 < len(items) else upper - 10
    return (upper + lower) / 2


class EscapedBracketsExtension(markdown.Extension):
    def __init__(self, **kwargs):
        self.config = {
            'delimiters': [
                list(DEFAULT_DELIMITERS),
                'Ordered list of (left, right, display) delimiter pairs. Each may be a Delimiter '
                'object, a dict with "left", "right" and "display" keys, or a 3-tuple. Earlier '
                'pairs take precedence.'
            ],
            'strict': [
                'ignore',
                'What to do with Latex-incompatible input: True or "error" (render an error '
                'instead), "warn" (report a warning), False or "ignore" (render it anyway), or a '
                'callable taking (error_code, message, token) and returning one of those.'
            ],
            'after': [
                '',
                'Name of the inline pattern that this extension\'s pattern will follow. By '
                'default (""), it runs ahead of all of them, including "backtick". It must come '
                'before "escape", or the backslashes will be consumed first; and if it follows '
                '"backtick", code spans inside math are replaced before the math is seen.'
            ],
            'error_color': [
                '#cc0000',
                'CSS colour for the Latex code of math that could not be parsed.'
            ],
            'progress': [
                Progress(),
                'An object accepting progress messages.'
            ],
        }
        super().__init__(**kwargs)
        self.processor = None


    def reset(self):
        if self.processor:
            self.processor.reset()


    def extendMarkdown(self, md):
        md.registerExtension(self)
        progress = self.getConfig('progress')

        rule = EscapedBracketRule(
            delimiters = self.getConfig('delimiters'),
            strict     = self.getConfig('strict'),
            renderer   = MathMLRenderer(progress, error_color = self.getConfig('error_color')),
            progress   = progress,
        )

        priority = HEAD_PRIORITY
        after = self.getConfig('after')
        if after:
            priority = priority_after(md.inlinePatterns, after) if after in md.inlinePatterns else None
            if priority is None:
                progress.error(NAME, msg = f'Cannot place pattern after "{after}" (config option "after")')
                priority = HEAD_PRIORITY

        self.processor = EscapedBracketInlineProcessor(rule, md)
        md.inlinePatterns.register(self.processor, 'escaped_bracket', priority)



def makeExtension(**kwargs):
    return EscapedBracketsExtension(**kwargs)
