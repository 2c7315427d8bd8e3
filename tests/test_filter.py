import itertools

import numpy as np
import pytest
from gaflib.containers.alignments import GafAlignment, WalkBatch
from gaflib.containers.graph import SegmentGraph, Walk
from gaflib.core.walk import parse_path, format_walk, Orientation
from gaflib.engines.filter import (
    AlignmentFilter, FilterCriteria, MatchMode, SegmentToken, filter_alignments, _membership_kernel
)
from gaflib.io.gaf import GafReader


def make_alignment(path: str, quality=None, line_number=1) -> GafAlignment:
    nodes = parse_path(path)
    return GafAlignment(
        query_name=f'read{line_number}', query_length=None, query_start=None, query_end=None, strand='+',
        mapping_quality=quality, line_number=line_number, raw_path=path, path_string=format_walk(nodes),
        walk=Walk(nodes)
    )


@pytest.fixture
def alignments():
    return [
        make_alignment('1+,2+,3-', 60, 1),
        make_alignment('2-,4+', 10, 2),
        make_alignment('5+', None, 3),
        make_alignment('1-,5-', 30, 4),
    ]


def run(alignments, quality=0, tokens=(), mode=MatchMode.ANY):
    return filter_alignments(alignments, FilterCriteria(quality, tuple(tokens), mode)).tolist()


class TestSegmentToken:
    def test_from_string(self):
        assert SegmentToken.from_string('12+') == SegmentToken('12', Orientation.FORWARD)
        assert SegmentToken.from_string(' 12 ') == SegmentToken('12')
        assert SegmentToken.from_string('12-').qualified
        assert not SegmentToken.from_string('12').qualified
        assert str(SegmentToken.from_string('12-')) == '12-'


class TestFilterCriteria:
    def test_from_text(self):
        criteria = FilterCriteria.from_text(20, ' 5+, 8  12-,,', 'all')
        assert [str(t) for t in criteria.tokens] == ['5+', '8', '12-']
        assert criteria.mode is MatchMode.ALL
        assert criteria.min_quality == 20

    def test_from_empty_text(self):
        criteria = FilterCriteria.from_text(0, '   ')
        assert criteria.tokens == ()
        assert criteria.is_default

    def test_string_tokens_are_coerced(self):
        criteria = FilterCriteria(tokens=('3-', '4'), mode='any')
        assert criteria.tokens == (SegmentToken('3', Orientation.REVERSE), SegmentToken('4'))
        assert criteria.mode is MatchMode.ANY
        assert not criteria.is_default


class TestQualityGate:
    def test_no_threshold(self, alignments):
        assert run(alignments) == [0, 1, 2, 3]
        assert run(alignments, quality=-5) == [0, 1, 2, 3]

    def test_threshold_is_inclusive(self, alignments):
        assert run(alignments, quality=30) == [0, 3]

    def test_missing_quality_never_passes(self, alignments):
        assert run(alignments, quality=1) == [0, 1, 3]

    def test_out_of_range_quality_is_missing(self):
        graph = SegmentGraph(links=[('1+', '2+')])
        lines = [f'r{i}\t10\t0\t10\t+\t>1>2\t0\t0\t0\t0\t0\t{q}' for i, q in enumerate(('60', '3000000000'))]
        result = GafReader(lines, graph).ingest()
        assert [a.mapping_quality for a in result] == [60, None]
        assert filter_alignments(result, FilterCriteria(10)).tolist() == [0]

    def test_large_quality_in_record(self):
        batch = WalkBatch.build([make_alignment('1+', 3_000_000_000), make_alignment('2+', 5, 2)])
        assert batch.qualities.tolist() == [3_000_000_000, 5]
        assert run([make_alignment('1+', 3_000_000_000), make_alignment('2+', 5, 2)], quality=10) == [0]

    def test_all_returned_pass(self, alignments):
        for t in (-1, 0, 1, 10, 11, 30, 60, 61):
            for i in run(alignments, quality=t):
                q = alignments[i].mapping_quality
                assert t <= 0 or (q is not None and q >= t)


class TestSegmentMatching:
    def test_unqualified_matches_either_orientation(self, alignments):
        assert run(alignments, tokens=['2']) == [0, 1]
        assert run(alignments, tokens=['5']) == [2, 3]

    def test_qualified_requires_orientation(self, alignments):
        assert run(alignments, tokens=['2+']) == [0]
        assert run(alignments, tokens=['2-']) == [1]

    def test_any(self, alignments):
        assert run(alignments, tokens=['3-', '4+']) == [0, 1]

    def test_all(self, alignments):
        assert run(alignments, tokens=['1', '5'], mode=MatchMode.ALL) == [3]
        assert run(alignments, tokens=['1', '2'], mode=MatchMode.ALL) == [0]

    def test_all_allows_one_segment_for_several_tokens(self, alignments):
        assert run(alignments, tokens=['5', '5+'], mode=MatchMode.ALL) == [2]

    def test_unknown_segment(self, alignments):
        assert run(alignments, tokens=['99']) == []
        assert run(alignments, tokens=['99', '4']) == [1]
        assert run(alignments, tokens=['99', '1'], mode=MatchMode.ALL) == []

    def test_quality_and_tokens(self, alignments):
        assert run(alignments, quality=20, tokens=['1'], mode=MatchMode.ALL) == [0, 3]
        assert run(alignments, quality=40, tokens=['1']) == [0]

    def test_all_is_subset_of_any(self, alignments):
        pool = ['1', '2+', '2-', '3', '4+', '5', '5-', '99']
        for tokens in itertools.combinations(pool, 2):
            any_ = set(run(alignments, tokens=tokens, mode=MatchMode.ANY))
            all_ = set(run(alignments, tokens=tokens, mode=MatchMode.ALL))
            assert all_ <= any_

    def test_scalar_and_batched_agree(self, alignments):
        pool = ['1', '2+', '3-', '5', '99']
        for n in range(3):
            for tokens in itertools.combinations(pool, n):
                for mode in MatchMode:
                    for quality in (0, 20):
                        criteria = FilterCriteria(quality, tokens, mode)
                        expected = [i for i, a in enumerate(alignments) if criteria.accepts(a)]
                        assert filter_alignments(alignments, criteria).tolist() == expected


class TestAlignmentFilter:
    def test_empty(self):
        f = AlignmentFilter([])
        assert len(f) == 0
        result = f.apply(FilterCriteria(10, ('1',)))
        assert result.dtype == np.int64
        assert len(result) == 0

    def test_reuses_batch(self, alignments):
        batch = WalkBatch.build(alignments)
        f = AlignmentFilter(batch)
        assert f.batch is batch
        np.testing.assert_array_equal(f.apply(FilterCriteria(tokens=('4',))), [1])

    def test_kernel(self):
        offsets = np.array([0, 2, 3], dtype=np.int64)
        codes = np.array([0, 1, 1], dtype=np.int32)
        orientations = np.array([1, -1, 1], dtype=np.int8)
        tokens = np.array([1], dtype=np.int32)
        np.testing.assert_array_equal(
            _membership_kernel(offsets, codes, orientations, tokens, np.array([-1], dtype=np.int8), False),
            [True, False]
        )
        np.testing.assert_array_equal(
            _membership_kernel(offsets, codes, orientations, tokens, np.array([0], dtype=np.int8), True),
            [True, True]
        )
