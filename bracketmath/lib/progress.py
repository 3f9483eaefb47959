'''
Diagnostic message infrastructure.

Extensions receive a Progress object through their 'progress' config option, and report warnings
and errors to it rather than raising them into Python Markdown.
'''

from dataclasses import dataclass
import shutil
import traceback
from typing import List, Optional


RESET = '\033[0m'

LINE_NUMBER_COLOUR = '\033[30;1m'
LINE_NUMBER_WIDTH = 4


def wrap(text: str, width: int):
    '''Yields (line_number, start_of_line, fragment) tuples, breaking long lines at 'width'.'''
    line_number = 1
    start_of_line = True

    if text == '':
        yield (1, True, '')

    while text:
        newline_index = text.find('\n')
        if newline_index != -1 and newline_index <= width:
            yield (line_number, start_of_line, text[:newline_index])
            text = text[newline_index + 1:]
            start_of_line = True
            line_number += 1
        else:
            yield (line_number, start_of_line, text[:width])
            text = text[width:]
            start_of_line = False


@dataclass
class Details:
    title: str
    content: str
    show_line_numbers: bool = False


class Message:
    LOCATION_COLOUR = ''
    MSG_COLOUR = ''
    TAG = ''

    def __init__(self, location: str, msg: str, details_list: Optional[List[Details]] = None):
        self.location = location
        self.msg = msg
        self.details_list = details_list or []

    def print(self):
        print(f'{self.LOCATION_COLOUR}{self.TAG}{self.location}:{RESET} {self.MSG_COLOUR}{self.msg}{RESET}')

        terminal_width = shutil.get_terminal_size(fallback = (80, 40)).columns
        inner_width = terminal_width - 6

        first = True
        for details in self.details_list:
            border = '┌' if first else '├'
            end = '┐' if first else '┤'
            title = f' {details.title} '
            print(f'  {border}─{title}{"─" * (inner_width - len(title))}─{end}')
            first = False

            if details.show_line_numbers:
                text_width = inner_width - LINE_NUMBER_WIDTH - 1
                for line_number, start_of_line, line in wrap(details.content.rstrip(), text_width):
                    n_str = str(line_number).rjust(LINE_NUMBER_WIDTH) if start_of_line else (' ' * LINE_NUMBER_WIDTH)
                    print(f'  │{LINE_NUMBER_COLOUR}{n_str}{RESET}  {line}{" " * (text_width - len(line))} │')

            else:
                for _, _, line in wrap(details.content.rstrip(), inner_width):
                    print(f'  │ {line}{" " * (inner_width - len(line))} │')

        if not first:
            print(f'  └─{"─" * inner_width}─┘')

    def __str__(self):
        return f'{self.TAG}{self.location}: {self.msg}'


class WarningMsg(Message):
    LOCATION_COLOUR = '\033[33;1m'
    MSG_COLOUR = '\033[37;1m'
    TAG = '[!] '

class ErrorMsg(Message):
    LOCATION_COLOUR = '\033[31;1m'
    MSG_COLOUR = '\033[37;1m'
    TAG = '[!!] '


class Progress:
    def __init__(self):
        self._errors = []

    def show(self, msg: Message):
        msg.print()
        if isinstance(msg, ErrorMsg):
            self._errors.append(msg)
        return msg

    def warning(self, location, *, msg):
        return self.show(WarningMsg(location, msg))

    def error(self, location, *, msg = None, exception = None, show_traceback = True, code = None):
        details_list = []
        if exception:
            msg = f'{msg}: {str(exception)} ({exception.__class__.__name__})' if msg else str(exception)
            if show_traceback:
                details_list.append(Details(
                    'Traceback',
                    ''.join(traceback.format_exception(type(exception),
                                                       exception,
                                                       exception.__traceback__))))

        elif not msg:
            msg = 'error'

        if code is not None:
            details_list.append(Details('Code', code, show_line_numbers = True))

        return self.show(ErrorMsg(location, msg, details_list))

    def get_errors(self):
        return list(self._errors)

    def clear_errors(self):
        self._errors.clear()
