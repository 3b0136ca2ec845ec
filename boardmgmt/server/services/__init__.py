"""
Application services.

One class per business area. Each service holds the request's ``AsyncSession``,
exposes one coroutine per use case, raises domain exceptions from
``boardmgmt.core.exceptions`` and commits once at the end of a successful use case.
"""
