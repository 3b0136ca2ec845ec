"""BoardMgmt.

Backend for a board-management application: meeting scheduling, document
storage, polling and voting, internal messaging and chat, role-based
permissions, dashboards and reporting.

High-level architecture
-----------------------

Requests flow through three layers:

- **API routers** (``boardmgmt.server.api.v1``): FastAPI endpoints that parse
  input, resolve the current user and delegate to a service.
- **Services** (``boardmgmt.server.services``): one class per business area,
  one method per use case. Services own the ``AsyncSession`` and commit once
  per use case.
- **Persistence** (``boardmgmt.core.database``): SQLModel entities and
  repositories over an async SQLAlchemy engine.

Side channels
-------------

- Microsoft Graph and Zoom for calendar events, Graph or SMTP for email.
- Local disk storage for documents, attachments and generated reports.
- A WebSocket realtime hub for chat and message notifications.

Errors raised by services are domain exceptions from ``boardmgmt.core.exceptions``;
``boardmgmt.server.exception_handlers`` turns them into a uniform JSON error body.
"""
