from typing import List, Optional, Tuple


class ParseSessionResult:
    """
    Outcome of one pass over a model or data text: the errors raised by the statements, each paired with the line at
    which the statement starts, and the number of statements that were processed successfully.
    """

    def __init__(self):
        self.errors: List[Tuple[str, int]] = []
        self.success_count: int = 0

    def __str__(self):
        return "{0} successful statement(s), {1} error(s)".format(self.success_count, len(self.errors))

    def add_error(self, message: str, line: int = 0):
        if line > 0:
            message = "Line {0}: {1}".format(line, message)
        self.errors.append((message, line))

    def increment_success(self):
        self.success_count += 1

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def has_success(self) -> bool:
        return self.success_count > 0

    def get_error_messages(self) -> List[str]:
        return [message for message, _ in self.errors]

    def get_errors_for_line(self, line: int) -> List[str]:
        return [message for message, l in self.errors if l == line]

    def merge(self, other: "ParseSessionResult"):
        self.errors.extend(other.errors)
        self.success_count += other.success_count


class ParseResult:
    """
    Summary of a complete parse session over model and data texts.
    """

    def __init__(self,
                 success: bool = False,
                 success_count: int = 0,
                 errors: List[str] = None,
                 warnings: List[str] = None):
        self.success: bool = success
        self.success_count: int = success_count
        self.errors: List[str] = list(errors) if errors is not None else []
        self.warnings: List[str] = list(warnings) if warnings is not None else []

    def __str__(self):
        return self.get_summary()

    @staticmethod
    def from_session(session_result: ParseSessionResult,
                     warnings: List[str] = None,
                     is_aborted: bool = False) -> "ParseResult":
        """
        Build the summary of a session. A session succeeds if it processed at least one statement and raised no
        error, unless it was aborted.
        """
        success = session_result.has_success() and not session_result.has_errors() and not is_aborted
        return ParseResult(success=success,
                           success_count=session_result.success_count,
                           errors=session_result.get_error_messages(),
                           warnings=warnings)

    def get_error_count(self) -> int:
        return len(self.errors)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def get_summary(self) -> str:
        if self.success:
            return "Parse successful: {0} statements".format(self.success_count)
        if self.success_count > 0:
            return "Parsed with errors: {0} statements, {1} errors".format(self.success_count, self.get_error_count())
        return "Parse failed: {0} errors".format(self.get_error_count())

    def get_first_error(self) -> Optional[str]:
        return self.errors[0] if len(self.errors) > 0 else None
