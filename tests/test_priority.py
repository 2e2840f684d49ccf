from civic_dispatch.schemas.issue import Priority
from civic_dispatch.services.priority import classify, cluster_key
from conftest import ROADS, T0, WATER


def _labels(result):
    return [(i.id, i.priority) for i in result]


class TestClusterKey:
    def test_no_location_has_no_key(self, make_issue):
        assert cluster_key(make_issue(T0)) is None

    def test_coordinates_are_rounded(self, make_issue):
        a = make_issue(T0, lat=28.6101, lng=77.2004)
        b = make_issue(T0 + 1, lat=28.6104, lng=77.1996)
        assert cluster_key(a, 3) == cluster_key(b, 3) == (28.61, 77.2, "Pothole")

    def test_category_is_part_of_key(self, make_issue):
        a = make_issue(T0, lat=28.61, lng=77.2, category="Pothole")
        b = make_issue(T0 + 1, lat=28.61, lng=77.2, category="Garbage")
        assert cluster_key(a) != cluster_key(b)


class TestClassify:
    def test_three_at_same_place_and_type_are_high(self, make_issue):
        issues = [make_issue(T0 + n, lat=28.61, lng=77.2) for n in range(3)]
        result = classify(issues, ROADS)
        assert all(i.priority == Priority.high for i in result)

    def test_two_are_not_enough(self, make_issue):
        issues = [make_issue(T0 + n, lat=28.61, lng=77.2) for n in range(2)]
        assert all(i.priority == Priority.normal for i in classify(issues, ROADS))

    def test_lone_issue_stays_normal(self, make_issue):
        issues = [make_issue(T0 + n, lat=28.61, lng=77.2) for n in range(3)]
        issues.append(make_issue(T0 + 10, lat=12.97, lng=77.59))
        result = {i.id: i.priority for i in classify(issues, ROADS)}
        assert result[T0 + 10] == Priority.normal

    def test_issue_without_location_is_never_high(self, make_issue):
        issues = [make_issue(T0 + n) for n in range(5)]
        assert all(i.priority == Priority.normal for i in classify(issues, ROADS))

    def test_same_place_different_category_does_not_cluster(self, make_issue):
        issues = [
            make_issue(T0, lat=28.61, lng=77.2, category="Pothole"),
            make_issue(T0 + 1, lat=28.61, lng=77.2, category="Pothole"),
            make_issue(T0 + 2, lat=28.61, lng=77.2, category="Street Light"),
        ]
        assert all(i.priority == Priority.normal for i in classify(issues, ROADS))

    def test_clusters_count_across_all_authorities(self, make_issue):
        issues = [
            make_issue(T0, lat=28.61, lng=77.2, category="Garbage", assigned=WATER),
            make_issue(T0 + 1, lat=28.61, lng=77.2, category="Garbage", assigned=WATER),
            make_issue(T0 + 2, lat=28.61, lng=77.2, category="Garbage", assigned=ROADS),
        ]
        result = classify(issues, ROADS)
        assert _labels(result) == [(T0 + 2, Priority.high)]

    def test_returns_only_the_authoritys_issues(self, make_issue):
        issues = [make_issue(T0, assigned=WATER), make_issue(T0 + 1, assigned=ROADS)]
        assert [i.id for i in classify(issues, ROADS)] == [T0 + 1]
        assert classify(issues, "Nobody") == []

    def test_high_band_first_and_order_kept_within_bands(self, make_issue):
        issues = [
            make_issue(T0 + 0),
            make_issue(T0 + 1, lat=28.61, lng=77.2),
            make_issue(T0 + 2),
            make_issue(T0 + 3, lat=28.61, lng=77.2),
            make_issue(T0 + 4, lat=12.97, lng=77.59),
            make_issue(T0 + 5, lat=28.61, lng=77.2),
        ]
        result = classify(issues, ROADS)
        assert [i.id for i in result] == [T0 + 1, T0 + 3, T0 + 5, T0 + 0, T0 + 2, T0 + 4]
        assert [i.priority for i in result[:3]] == [Priority.high] * 3
        assert [i.priority for i in result[3:]] == [Priority.normal] * 3

    def test_precision_changes_cluster_granularity(self, make_issue):
        issues = [
            make_issue(T0, lat=28.611, lng=77.2),
            make_issue(T0 + 1, lat=28.612, lng=77.2),
            make_issue(T0 + 2, lat=28.613, lng=77.2),
        ]
        assert all(i.priority == Priority.normal for i in classify(issues, ROADS, precision=3))
        assert all(i.priority == Priority.high for i in classify(issues, ROADS, precision=2))

    def test_labelled_issue_keeps_its_fields(self, make_issue):
        issue = make_issue(T0, lat=28.61, lng=77.2, upvotes=4, resolved_at=T0 + 10)
        out = classify([issue], ROADS)[0]
        assert out.upvotes == 4 and out.resolved_at == T0 + 10
        assert out.to_record()["priority"] == "Normal"
