"""
Reports.

Month-bucketed attendance, voting and document metrics for the reports page, and
generation of HTML report files stored under ``<uploads>/reports``.
"""

from __future__ import annotations

import calendar
import html
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.base import as_utc, new_id, utc_now
from boardmgmt.core.database.entities.reports import GeneratedReport
from boardmgmt.core.database.repositories import (
    DocumentRepository,
    MeetingRepository,
    ReportRepository,
    VoteRepository,
)
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.enums import MeetingStatus, ReportPeriod, VoteEligibility
from boardmgmt.core.models.io.reports import (
    MonthlyAttendance,
    MonthlyDocuments,
    MonthlyVoting,
    PerformanceMetrics,
    ReportGenerateRequest,
    ReportRead,
    ReportsDashboard,
)
from boardmgmt.server.core.config import settings

from .file_storage import FileStorage, get_file_storage

logger = get_logger(__name__)

REPORTS_DIR = "reports"


def add_months(value: datetime, months: int) -> datetime:
    """First day of the month ``months`` away from ``value``'s month."""
    index = value.year * 12 + (value.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=timezone.utc)


def resolve_period(
    period: str,
    start: Optional[datetime],
    end: Optional[datetime],
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime, str]:
    """
    Turn a named period into a concrete window and a human label.

    Returns:
        Tuple of (start, end, label); ``end`` is inclusive
    """
    now = as_utc(now) or utc_now()
    one_tick = timedelta(microseconds=1)
    if period == ReportPeriod.last_month.value:
        first = add_months(now, -1)
        return first, add_months(first, 1) - one_tick, f"{first:%b %Y}"
    if period == ReportPeriod.last_quarter.value:
        current_quarter = datetime(now.year, 3 * ((now.month - 1) // 3) + 1, 1, tzinfo=timezone.utc)
        first = add_months(current_quarter, -3)
        return first, current_quarter - one_tick, "Last Quarter"
    if period == ReportPeriod.last_year.value:
        first = datetime(now.year - 1, 1, 1, tzinfo=timezone.utc)
        return first, datetime(now.year, 1, 1, tzinfo=timezone.utc) - one_tick, str(now.year - 1)

    window_start = as_utc(start) or one_month_before(now)
    window_end = as_utc(end) or now
    return window_start, window_end, f"{window_start:%Y-%m-%d} to {window_end:%Y-%m-%d}"


def one_month_before(now: datetime) -> datetime:
    """Same day and time one calendar month earlier, clamped to the month length."""
    previous = add_months(now, -1)
    day = min(now.day, calendar.monthrange(previous.year, previous.month)[1])
    return now.replace(year=previous.year, month=previous.month, day=day)


def report_name(report_type: str, label: str) -> str:
    title = report_type.strip()[:1].upper() + report_type.strip()[1:] if report_type.strip() else "Custom"
    return f"{title} Report - {label}"


def _month_key(value: datetime) -> str:
    return f"{as_utc(value):%Y-%m}"


class ReportService:
    """Report generation and the reports dashboard."""

    def __init__(self, session: AsyncSession, storage: Optional[FileStorage] = None) -> None:
        self.session = session
        self.reports = ReportRepository(session)
        self.meetings = MeetingRepository(session)
        self.votes = VoteRepository(session)
        self.documents = DocumentRepository(session)
        self.storage = storage or get_file_storage()

    async def generate(
        self, user_id: Optional[str], request: ReportGenerateRequest, base_url: Optional[str] = None
    ) -> str:
        """Render a report file for the requested period and record it; returns the report id."""
        now = utc_now()
        start, end, label = resolve_period(request.period, request.start, request.end, now)
        report_id = new_id()
        report_type = (request.type or "custom").strip() or "custom"

        body = await self._render(report_type, label, start, end, now)
        url = await self.storage.write_text(f"{REPORTS_DIR}/{report_id}.html", body)
        base = (base_url or settings.public_base_url or "").rstrip("/")

        await self.reports.create(
            GeneratedReport(
                id=report_id,
                name=report_name(report_type, label),
                type=report_type,
                generated_at=now,
                generated_by_user_id=user_id,
                file_url=f"{base}{url}",
                format=request.format,
                period_label=label,
                start_date=start,
                end_date=end,
            )
        )
        await self.session.commit()
        logger.info(f"Generated {report_type} report {report_id} for {label}")
        return report_id

    async def _render(self, report_type: str, label: str, start: datetime, end: datetime, now: datetime) -> str:
        meetings = await self.meetings.search(start=start, end=end + timedelta(microseconds=1))
        polls = await self.votes.created_between(start, end + timedelta(microseconds=1))
        ballots = await self.votes.ballots_for([p.id for p in polls])
        documents = [d for d in await self.documents.totals_since(start) if as_utc(d.uploaded_at) <= end]
        rows = [
            ("Meetings", len(meetings)),
            ("Completed meetings", sum(1 for m in meetings if MeetingStatus(m.status) == MeetingStatus.completed)),
            ("Polls", len(polls)),
            ("Ballots", len(ballots)),
            ("Documents uploaded", len(documents)),
        ]
        table = "\n".join(f"<tr><th>{html.escape(name)}</th><td>{value}</td></tr>" for name, value in rows)
        return (
            "<!doctype html><html><head><meta charset='utf-8'>"
            f"<title>{html.escape(report_name(report_type, label))}</title></head><body>\n"
            f"<h1>{html.escape(report_type.upper())} Report</h1>\n"
            f"<p>Period: {html.escape(label)}</p>\n"
            f"<p>Generated at: {now:%Y-%m-%d %H:%M:%S} UTC</p>\n"
            f"<hr/>\n<table>\n{table}\n</table>\n"
            "</body></html>\n"
        )

    async def recent(self, take: int = 10) -> List[ReportRead]:
        return [ReportRead.model_validate(r) for r in await self.reports.recent(take)]

    async def dashboard(self, months: int = 6) -> ReportsDashboard:
        months = max(1, months)
        now = utc_now()
        window_start = add_months(now, -(months - 1))
        window_end = add_months(window_start, months)
        keys = [_month_key(add_months(window_start, i)) for i in range(months)]

        meetings = await self.meetings.search(start=window_start, end=window_end)
        meeting_ids = [m.id for m in meetings]
        attendees = await self.meetings.attendees_for(meeting_ids)
        agenda_items = await self.meetings.agenda_items_for(meeting_ids)
        polls = await self.votes.created_between(window_start, window_end)
        ballots = await self.votes.ballots_for([p.id for p in polls])
        documents = await self.documents.totals_since(window_start)

        meetings_by_month: Dict[str, int] = defaultdict(int)
        confirmed_by_month: Dict[str, int] = defaultdict(int)
        for meeting in meetings:
            key = _month_key(meeting.scheduled_at)
            meetings_by_month[key] += 1
            confirmed_by_month[key] += sum(1 for a in attendees.get(meeting.id, []) if a.is_confirmed)

        ballots_by_poll: Dict[str, List] = defaultdict(list)
        for ballot in ballots:
            ballots_by_poll[ballot.vote_id].append(ballot)
        attendee_count_by_meeting = {mid: len(rows) for mid, rows in attendees.items()}
        polls_by_month: Dict[str, int] = defaultdict(int)
        ballots_by_month: Dict[str, int] = defaultdict(int)
        voters_by_month: Dict[str, int] = defaultdict(int)
        eligible_by_month: Dict[str, int] = defaultdict(int)
        for poll in polls:
            key = _month_key(poll.created_at)
            cast = ballots_by_poll.get(poll.id, [])
            voters = len({b.user_id for b in cast})
            polls_by_month[key] += 1
            ballots_by_month[key] += len(cast)
            voters_by_month[key] += voters
            if VoteEligibility(poll.eligibility) == VoteEligibility.meeting_attendees and poll.meeting_id:
                eligible_by_month[key] += attendee_count_by_meeting.get(poll.meeting_id, 0)
            else:
                eligible_by_month[key] += voters

        docs_by_month: Dict[str, int] = defaultdict(int)
        bytes_by_month: Dict[str, int] = defaultdict(int)
        for document in documents:
            key = _month_key(document.uploaded_at)
            docs_by_month[key] += 1
            bytes_by_month[key] += document.size_bytes or 0

        scheduled = len(meetings)

        def per_meeting(total: int) -> float:
            return round(total / scheduled, 2) if scheduled else 0.0

        performance = PerformanceMetrics(
            meetings_scheduled=scheduled,
            meetings_completed=sum(1 for m in meetings if MeetingStatus(m.status) == MeetingStatus.completed),
            average_agenda_items=per_meeting(len(agenda_items)),
            average_documents_per_meeting=per_meeting(sum(1 for d in documents if d.meeting_id)),
            average_attendees=per_meeting(sum(len(rows) for rows in attendees.values())),
            polls_per_meeting=per_meeting(len(polls)),
        )

        return ReportsDashboard(
            months=keys,
            attendance=[
                MonthlyAttendance(month=k, meetings=meetings_by_month[k], confirmed_attendees=confirmed_by_month[k])
                for k in keys
            ],
            voting=[
                MonthlyVoting(
                    month=k,
                    polls=polls_by_month[k],
                    ballots=ballots_by_month[k],
                    participation_rate=round(100.0 * voters_by_month[k] / eligible_by_month[k], 1)
                    if eligible_by_month[k]
                    else 0.0,
                )
                for k in keys
            ],
            documents=[MonthlyDocuments(month=k, count=docs_by_month[k], bytes=bytes_by_month[k]) for k in keys],
            performance=performance,
            recent_reports=await self.recent(10),
        )
