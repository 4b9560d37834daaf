"""Regroups flat summary rows into an organisation -> repositories view."""
from collections.abc import Iterable

from gcov_server.models.summary import OrganisationView
from gcov_server.models.summary import SummaryRecord


def bucket_by_organisation(records: Iterable[SummaryRecord]) -> dict[str, list[SummaryRecord]]:
    """Group records by organisation, keeping encounter order inside each bucket."""
    buckets: dict[str, list[SummaryRecord]] = {}
    for record in records:
        buckets.setdefault(record.org, []).append(record)
    return buckets


def project_views(buckets: dict[str, list[SummaryRecord]]) -> list[OrganisationView]:
    return [
        OrganisationView(name=name, repos=repos)
        for name, repos in buckets.items()
    ]


def group_by_organisation(records: Iterable[SummaryRecord]) -> list[OrganisationView]:
    """
    Build one view per organisation from ``records``.

    Every input record appears exactly once in the output. Organisation order
    is not part of the contract.
    """
    return project_views(bucket_by_organisation(records))
