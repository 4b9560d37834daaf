from datetime import datetime
from datetime import timezone

import pytest

from gcov_server.models.summary import SummaryRecord
from gcov_server.services.aggregation_service import bucket_by_organisation
from gcov_server.services.aggregation_service import group_by_organisation


def make_record(org: str, repo: str, summary) -> SummaryRecord:
    return SummaryRecord(
        insert_time=datetime(2024, 5, 1, tzinfo=timezone.utc),
        org=org,
        repo=repo,
        coverage=summary,
    )


class TestGroupByOrganisation:
    def test_empty_input(self):
        assert group_by_organisation([]) == []

    def test_groups_by_org(self, summary):
        records = [
            make_record('orgA', 'repoX', summary),
            make_record('orgB', 'repoZ', summary),
            make_record('orgA', 'repoY', summary),
        ]
        views = {view.name: view for view in group_by_organisation(records)}

        assert set(views) == {'orgA', 'orgB'}
        assert [r.repo for r in views['orgA'].repos] == ['repoX', 'repoY']
        assert [r.repo for r in views['orgB'].repos] == ['repoZ']

    @pytest.mark.parametrize(
        'pairs', [
            [('a', 'x')],
            [('a', 'x'), ('a', 'x'), ('a', 'y')],
            [('a', 'x'), ('b', 'x'), ('c', 'x'), ('b', 'y'), ('a', 'z')],
        ],
    )
    def test_no_record_dropped_or_duplicated(self, summary, pairs):
        records = [make_record(org, repo, summary) for org, repo in pairs]
        views = group_by_organisation(records)

        assert sum(len(view.repos) for view in views) == len(records)
        for view in views:
            assert all(record.org == view.name for record in view.repos)
        assert len({view.name for view in views}) == len(views)

    def test_bucket_preserves_encounter_order(self, summary):
        records = [make_record('o', f'r{i}', summary) for i in range(5)]
        buckets = bucket_by_organisation(reversed(records))
        assert [r.repo for r in buckets['o']] == ['r4', 'r3', 'r2', 'r1', 'r0']


class TestSummaryRecord:
    def test_naive_time_assumed_utc(self, summary):
        record = SummaryRecord(
            insert_time=datetime(1970, 1, 2), org='o', repo='r', coverage=summary,
        )
        assert record.insert_time.tzinfo is timezone.utc
        assert record.to_json_dict()['insert_time'] == 86400

    def test_json_dict_uses_flat_coverage(self, summary, flat_summary):
        record = make_record('o', 'r', summary)
        data = record.to_json_dict()
        assert data['org'] == 'o'
        assert data['coverage'] == flat_summary
