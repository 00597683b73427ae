"""
Data models for Factorial time tracking.

This module defines the data structures used throughout the application:
the work entry being logged, the result of a logging attempt, and the
summary of a multi-day run.
"""

from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Optional, List, TYPE_CHECKING

from .date_utils import (
    parse_date,
    parse_time,
    parse_break_minutes,
    time_to_minutes,
)

if TYPE_CHECKING:
    from .config import Config


@dataclass
class WorkEntry:
    """
    A single day of work to log.

    Attributes:
        date: Day in YYYY-MM-DD format
        start_time: Start time (HH:MM)
        end_time: End time (HH:MM)
        break_minutes: Break length in minutes (None if not specified)
        description: Free text description (None if not specified)
    """
    date: str
    start_time: str
    end_time: str
    break_minutes: Optional[int] = None
    description: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize the entry."""
        self.date = parse_date(self.date).isoformat()
        self.start_time = parse_time(self.start_time)
        self.end_time = parse_time(self.end_time)

        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError(
                f"End time {self.end_time} must be after start time {self.start_time}"
            )

        if self.break_minutes is not None:
            self.break_minutes = parse_break_minutes(self.break_minutes)
            if self.break_minutes >= self.span_minutes():
                raise ValueError(
                    f"Break of {self.break_minutes} minutes does not fit between "
                    f"{self.start_time} and {self.end_time}"
                )

        if self.description is not None:
            self.description = self.description.strip() or None

    @classmethod
    def from_defaults(
        cls,
        day: date_type,
        config: 'Config',
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        break_minutes: Optional[int] = None,
        description: Optional[str] = None,
    ) -> 'WorkEntry':
        """
        Build an entry for a day, filling unspecified values from config.

        Args:
            day: Day to log
            config: Configuration providing default hours
            start_time: Start time override
            end_time: End time override
            break_minutes: Break override
            description: Description override

        Returns:
            Validated work entry
        """
        iso = day.isoformat()
        return cls(
            date=iso,
            start_time=start_time or config.default_start_time,
            end_time=end_time or config.default_end_time,
            break_minutes=(
                break_minutes if break_minutes is not None
                else config.default_break_minutes
            ),
            description=description or f"Work day - {iso}",
        )

    @property
    def day(self) -> int:
        """Day of month of the entry."""
        return parse_date(self.date).day

    def span_minutes(self) -> int:
        """Minutes between start and end time."""
        return time_to_minutes(self.end_time) - time_to_minutes(self.start_time)

    def worked_minutes(self) -> int:
        """Minutes worked after subtracting the break."""
        return self.span_minutes() - (self.break_minutes or 0)

    def format_details(self) -> List[str]:
        """Human readable lines describing the entry."""
        lines = [
            f"Date: {self.date}",
            f"Time: {self.start_time} - {self.end_time}",
        ]
        if self.break_minutes is not None:
            lines.append(f"Break: {self.break_minutes} minutes")
        worked = self.worked_minutes()
        lines.append(f"Worked: {worked // 60}h {worked % 60:02d}m")
        if self.description:
            lines.append(f"Description: {self.description}")
        return lines


@dataclass
class LogResult:
    """
    Result of one attempt to log hours.

    Attributes:
        entry_date: Date of the entry that was being logged
        success: Whether the attempt succeeded
        nothing_to_do: True when no row with missing hours was found
        row_date: Approximate date text of the row that was filled
        error: Error message if unsuccessful
    """
    entry_date: str
    success: bool
    nothing_to_do: bool = False
    row_date: Optional[str] = None
    error: Optional[str] = None


@dataclass
class WeekSummary:
    """Summary of logging several days in one session."""
    results: List[LogResult] = field(default_factory=list)

    def add_result(self, result: LogResult):
        self.results.append(result)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> List[LogResult]:
        return [r for r in self.results if not r.success]

    def format_summary(self) -> str:
        """
        Format the summary as a human-readable string.

        Returns:
            Formatted summary text
        """
        lines = [
            "\n" + "=" * 60,
            "WEEK SUMMARY",
            "=" * 60,
            f"  {self.successful}/{self.total} entries logged successfully",
        ]

        nothing = [r for r in self.results if r.nothing_to_do]
        if nothing:
            lines.append(f"  {len(nothing)} day(s) had no missing hours")

        if self.failed:
            lines.append("\nFailed:")
            for result in self.failed:
                lines.append(f"  - {result.entry_date}: {result.error or 'unknown error'}")

        lines.append("=" * 60 + "\n")
        return "\n".join(lines)
