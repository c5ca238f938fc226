"""Extraction of failure messages and source locations from gtest output."""

import re
from dataclasses import dataclass

from gtest_runner.parsing.source_files import SourceFileFinder

MSVC_FAILURE = re.compile(r"^(?P<file>.+?)\((?P<line>\d+)\): error: ?(?P<message>.*)$")
GCC_FAILURE = re.compile(
    r"^(?P<file>.+?):(?P<line>\d+): (?:error: ?|Failure)(?P<message>.*)$"
)
UNKNOWN_FILE_FAILURE = re.compile(r"^unknown file: (?:error: ?|Failure)(?P<message>.*)$")
# Failure elements of XML reports start with a bare "file:line" line.
XML_FAILURE = re.compile(r"^(?P<file>.+?):(?P<line>\d+)(?P<message>)$")


def create_stack_trace_entry(label: str, file: str | None, line: int | str) -> str:
    """Format a single stack trace line pointing at a source location."""
    return f"at {label} in {file or ''}:line {line}\n"


@dataclass(frozen=True, kw_only=True)
class ParsedError:
    """Human readable message plus a source anchored stack trace."""

    message: str
    stack_trace: str


@dataclass(frozen=True, kw_only=True)
class _Failure:
    file: str | None
    line: int
    lines: list[str]


class ErrorMessageParser:
    """Splits the output of a failed test into individual assertion failures."""

    def __init__(self, error_text: str, finder: SourceFileFinder) -> None:
        self.error_text = error_text
        self.finder = finder

    def parse(self) -> ParsedError:
        failures = self._split_failures()
        if not failures:
            return ParsedError(message=self.error_text.strip(), stack_trace="")

        if len(failures) == 1:
            message = "\n".join(failures[0].lines).strip()
        else:
            message = "\n".join(
                f"#{i} - " + "\n".join(failure.lines).strip()
                for i, failure in enumerate(failures, start=1)
            )

        stack_trace = "".join(
            self._stack_trace_entry(i, failure, numbered=len(failures) > 1)
            for i, failure in enumerate(failures, start=1)
            if failure.file is not None
        )
        return ParsedError(message=message, stack_trace=stack_trace)

    def _split_failures(self) -> list[_Failure]:
        failures: list[_Failure] = []
        for line in self.error_text.splitlines():
            if match := (
                MSVC_FAILURE.match(line)
                or GCC_FAILURE.match(line)
                or XML_FAILURE.match(line)
            ):
                failures.append(
                    _Failure(
                        file=match["file"],
                        line=int(match["line"]),
                        lines=[match["message"].strip()],
                    )
                )
            elif match := UNKNOWN_FILE_FAILURE.match(line):
                failures.append(
                    _Failure(file=None, line=0, lines=[match["message"].strip()])
                )
            elif failures:
                failures[-1].lines.append(line)
        return failures

    def _stack_trace_entry(self, index: int, failure: _Failure, *, numbered: bool) -> str:
        assert failure.file is not None
        full_path = self.finder.find(failure.file) or failure.file
        short_name = re.split(r"[\\/]", failure.file)[-1]
        label = f"{short_name}:{failure.line}"
        if numbered:
            label = f"#{index} - {label}"
        return create_stack_trace_entry(label, full_path, failure.line)
