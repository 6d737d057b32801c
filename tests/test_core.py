import pytest

from bamambig.ambiguity import filter_column, select_major_variant
from bamambig.models import PileupColumn, SymbolCategory, ThresholdConfig
from bamambig.region import Region, parse_region, resolve_chromosomes, resolve_start_stop
from bamambig.utils import round_half_away

A = SymbolCategory.A
T = SymbolCategory.T
C = SymbolCategory.C
G = SymbolCategory.G
DEL = SymbolCategory.DELETION
INS = SymbolCategory.INSERTION


def make_column(counts, pos0=4):
    """counts: {category: (forward, reverse)}"""
    col = PileupColumn(pos0=pos0)
    for category, (fwd, rev) in counts.items():
        for _ in range(fwd):
            col.add(category, is_reverse=False)
        for _ in range(rev):
            col.add(category, is_reverse=True)
    return col


def config(**kw):
    base = dict(
        ambiguity_threshold=0.1,
        strand_bias_threshold=0.0,
        base_quality_floor=1,
        map_quality_floor=1,
        depth_floor=1,
        minor_allele_depth_floor=1,
    )
    base.update(kw)
    return ThresholdConfig(**base)


def test_tie_goes_to_later_category():
    assert select_major_variant(make_column({A: (2, 2), G: (2, 2)})) is G
    assert select_major_variant(make_column({T: (3, 0), DEL: (3, 0)})) is DEL
    assert select_major_variant(make_column({A: (1, 1), C: (1, 1), INS: (1, 1)})) is INS


def test_major_variant_highest_count():
    assert select_major_variant(make_column({A: (5, 5), G: (2, 2), INS: (1, 0)})) is A


def test_balanced_tie_accepted():
    col = make_column({A: (2, 2), G: (2, 2)})
    result = filter_column(col, config(ambiguity_threshold=0.2))
    assert result == (5, {A: 0.5, G: 0.5})


def test_minor_proportion_must_strictly_exceed_threshold():
    col = make_column({A: (2, 2), G: (2, 2)})
    assert filter_column(col, config(ambiguity_threshold=0.5)) is None


def test_indel_column_accepted():
    col = make_column({DEL: (1, 0), INS: (2, 0), G: (5, 0)}, pos0=13)
    result = filter_column(col, config(ambiguity_threshold=0.1))
    assert result == (14, {G: 0.625, DEL: 0.125, INS: 0.25})


def test_one_strand_minor_rejects_column():
    # minor T only on reverse strand
    col = make_column({G: (30, 30), T: (0, 40)})
    assert filter_column(col, config(strand_bias_threshold=0.1)) is None


def test_major_strand_bias_not_checked():
    col = make_column({G: (60, 0), T: (20, 20)})
    result = filter_column(col, config(strand_bias_threshold=0.1))
    assert result is not None
    assert result[1] == {G: 0.6, T: 0.4}


def test_strand_bias_boundary_inclusive():
    # forward fraction exactly at the threshold passes
    col = make_column({G: (10, 10), T: (1, 9)})
    assert filter_column(col, config(strand_bias_threshold=0.1)) is not None
    assert filter_column(col, config(strand_bias_threshold=0.11)) is None


def test_minor_depth_floor():
    col = make_column({G: (10, 10), A: (2, 2)})
    assert filter_column(col, config(minor_allele_depth_floor=4)) is not None
    assert filter_column(col, config(minor_allele_depth_floor=5)) is None


def test_raising_minor_depth_floor_never_accepts_more():
    col = make_column({G: (10, 10), A: (3, 2), C: (1, 1)})
    accepted = [filter_column(col, config(minor_allele_depth_floor=k)) is not None for k in range(0, 12)]
    # once rejected, stays rejected
    first_reject = accepted.index(False)
    assert not any(accepted[first_reject:])


def test_unambiguous_column_is_never_reported():
    assert filter_column(make_column({G: (10, 10)}), config(minor_allele_depth_floor=0)) is None
    assert filter_column(PileupColumn(pos0=0), config(minor_allele_depth_floor=0)) is None


def test_filter_is_idempotent():
    col = make_column({A: (7, 6), C: (3, 4), G: (20, 21), DEL: (2, 2)})
    cfg = config()
    assert filter_column(col, cfg) == filter_column(col, cfg)


@pytest.mark.parametrize(
    "counts",
    [
        {A: (1, 2), C: (2, 1), G: (3, 4)},
        {A: (5, 6), T: (3, 3), C: (7, 7), G: (1, 1), DEL: (2, 1), INS: (1, 1)},
        {G: (333, 334), T: (111, 111)},
    ],
)
def test_proportions_sum_to_one_within_rounding(counts):
    result = filter_column(make_column(counts), config())
    assert result is not None
    _, proportions = result
    assert all(p > 0 for p in proportions.values())
    assert abs(sum(proportions.values()) - 1.0) <= len(proportions) * 0.00005 + 1e-12


def test_zero_count_categories_omitted():
    _, proportions = filter_column(make_column({A: (2, 2), G: (3, 3)}), config())
    assert set(proportions) == {A, G}


def test_round_half_away():
    assert round_half_away(0.125, 2) == 0.13
    assert round_half_away(1 / 3, 4) == 0.3333
    assert round_half_away(2 / 3, 4) == 0.6667
    assert round_half_away(0.5, 0) == 1.0
    assert round_half_away(-0.5, 0) == -1.0


def test_category_lookup_requires_enum():
    col = PileupColumn(pos0=0)
    with pytest.raises(TypeError):
        col.count("A")


def test_from_base_is_total():
    assert SymbolCategory.from_base("a") is A
    assert SymbolCategory.from_base("N") is None
    assert SymbolCategory.from_base("") is None
    assert SymbolCategory.from_base(None) is None


@pytest.mark.parametrize("field", ["ambiguity_threshold", "strand_bias_threshold"])
@pytest.mark.parametrize("value", [-0.01, 0.51])
def test_threshold_config_rejects_out_of_range(field, value):
    with pytest.raises(ValueError):
        ThresholdConfig(**{field: value})


def test_threshold_config_defaults():
    cfg = ThresholdConfig()
    assert cfg.ambiguity_threshold == 0.1
    assert cfg.strand_bias_threshold == 0.1
    assert cfg.base_quality_floor == 20
    assert cfg.map_quality_floor == 60
    assert cfg.depth_floor == 100
    assert cfg.include_indels is True


def test_region_chrom_only():
    assert parse_region("chr1") == Region("chr1", 1, None)
    assert resolve_start_stop(1, None) == (0, None)


def test_region_chrom_and_single_position():
    region = parse_region("chr2:100")
    assert region == Region("chr2", 100, None)
    assert resolve_start_stop(region.start, region.end) == (99, None)


def test_region_chrom_and_range():
    region = parse_region("chr3:200-300")
    assert region == Region("chr3", 200, 300)
    assert resolve_start_stop(region.start, region.end) == (199, 300)


def test_region_contig_name_with_dots():
    assert parse_region("NC_012920.1:5-5") == Region("NC_012920.1", 5, 5)


def test_start_stop_defaults_to_whole_chromosome():
    assert resolve_start_stop(None, None) == (0, None)


def test_start_stop_rejects_end_without_start():
    with pytest.raises(ValueError):
        resolve_start_stop(None, 10)


@pytest.mark.parametrize("token", ["chr1:0-5", "chr1:0", "chr1:10-5", "chr1:", "chr1:a-b", ":5-10"])
def test_region_rejects_bad_tokens(token):
    with pytest.raises(ValueError):
        parse_region(token)


def test_resolve_chromosomes():
    refs = ["chr1", "chr2", "chrM"]
    assert resolve_chromosomes(None, refs) == refs
    assert resolve_chromosomes("chrM", refs) == ["chrM"]
