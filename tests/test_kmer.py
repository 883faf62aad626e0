"""Tests for k-mer packing, counting and histograms."""

from itertools import product

import pytest

from asmcheck.kmer import (
    COMPLEMENT_TABLE,
    FORWARD_TABLE,
    MAX_K,
    InvalidConfiguration,
    SpectrumRow,
    as_bytes,
    count_kmers,
    decode_index,
    encode_forward,
    encode_reverse_complement,
    iter_window_indexes,
    kmer_histogram,
    kmer_spectrum,
    merge_counts,
    to_canonical_index,
    to_strand_index,
)

ALL_3MERS = [''.join(p) for p in product('ACGT', repeat=3)]


# ---------------------------------------------------------------------------
# Base tables
# ---------------------------------------------------------------------------


class TestBaseTables:
    def test_forward_codes(self):
        for base, code in zip('ACGT', range(4)):
            assert FORWARD_TABLE[ord(base)] == code
            assert FORWARD_TABLE[ord(base.lower())] == code

    def test_complement_codes(self):
        for base, code in zip('ACGT', [3, 2, 1, 0]):
            assert COMPLEMENT_TABLE[ord(base)] == code
            assert COMPLEMENT_TABLE[ord(base.lower())] == code

    def test_other_bytes_are_zero(self):
        for b in b'NnRY-.*\x00\xff':
            assert FORWARD_TABLE[b] == 0
            assert COMPLEMENT_TABLE[b] == 0

    def test_tables_cover_every_byte(self):
        assert len(FORWARD_TABLE) == 256
        assert len(COMPLEMENT_TABLE) == 256

    def test_tables_are_immutable(self):
        with pytest.raises(TypeError):
            FORWARD_TABLE[0] = 1


# ---------------------------------------------------------------------------
# Canonical index
# ---------------------------------------------------------------------------


class TestCanonicalIndex:
    def test_forward_orientation(self):
        # 'A' <= 'G' at the first asymmetric pair
        assert to_canonical_index('ACG') == 0b000110

    def test_reverse_complement_orientation(self):
        # 'G' > 'A', so the reverse complement TAC is packed
        assert to_canonical_index('GTA') == encode_forward('TAC') == 49
        assert to_canonical_index('TAC') == encode_forward('GTA') == 44

    def test_bytes_and_str_agree(self):
        for w in ALL_3MERS:
            assert to_canonical_index(w) == to_canonical_index(w.encode())

    def test_bytearray_and_memoryview(self):
        assert to_canonical_index(bytearray(b'CGT')) == 27
        assert to_canonical_index(memoryview(b'xxCGT')[2:]) == 27

    def test_range_bound(self):
        for w in ALL_3MERS:
            assert 0 <= to_canonical_index(w) < 4 ** 3

    def test_max_k(self):
        assert to_canonical_index('T' * MAX_K) == 4 ** MAX_K - 1
        assert to_canonical_index('A' * MAX_K) == 0

    def test_k_too_large_raises(self):
        with pytest.raises(InvalidConfiguration):
            to_canonical_index('A' * (MAX_K + 1))

    def test_empty_window_raises(self):
        with pytest.raises(InvalidConfiguration):
            to_canonical_index(b'')

    def test_invalid_configuration_is_value_error(self):
        with pytest.raises(ValueError):
            to_canonical_index('')

    def test_ambiguity_codes_encode_as_a(self):
        assert to_canonical_index('NNN') == 0
        assert to_canonical_index('ACN') == to_canonical_index('ACA') == 4

    def test_lowercase_matches_uppercase_when_same_case(self):
        for w in ALL_3MERS:
            assert to_canonical_index(w.lower()) == to_canonical_index(w)

    def test_single_base(self):
        assert to_canonical_index('G') == 2
        assert to_canonical_index('t') == 3


class TestStrandIndex:
    def test_range_bound(self):
        for w in ALL_3MERS:
            assert 0 <= to_strand_index(w) < 4 ** 3

    def test_is_minimum_of_both_packings(self):
        for w in ALL_3MERS:
            assert to_strand_index(w) == min(
                encode_forward(w), encode_reverse_complement(w)
            )

    def test_odd_k_halves_the_space(self):
        # no 3-mer is its own reverse complement
        assert len({to_strand_index(w) for w in ALL_3MERS}) == 32

    def test_k_too_large_raises(self):
        with pytest.raises(InvalidConfiguration):
            to_strand_index('A' * 33)


class TestEncodeDecode:
    def test_as_bytes(self):
        assert as_bytes('ACgt') == b'ACgt'
        assert as_bytes('AC\u00e9') == b'AC?'
        assert as_bytes(bytearray(b'AC')) == b'AC'
        assert as_bytes(memoryview(b'xAC')[1:]) == b'AC'

    def test_reverse_complement_packing(self):
        assert encode_reverse_complement('AAC') == encode_forward('GTT')

    def test_decode_forward(self):
        for w in ALL_3MERS:
            assert decode_index(encode_forward(w), 3) == w

    def test_decode_pads_leading_a(self):
        assert decode_index(0, 4) == 'AAAA'
        assert decode_index(3, 4) == 'AAAT'

    def test_decode_invalid_k(self):
        with pytest.raises(InvalidConfiguration):
            decode_index(0, 0)


# ---------------------------------------------------------------------------
# Counting
# ---------------------------------------------------------------------------


class TestCountKmers:
    def test_literal_example(self):
        # ACG, CGT, GTA, TAC, ACG, CGT
        counts = count_kmers([('s', b'ACGTACGT')], 3)
        assert counts == {6: 2, 27: 2, 49: 1, 44: 1}

    def test_literal_example_strand_invariant(self):
        counts = count_kmers([('s', b'ACGTACGT')], 3, strand_invariant=True)
        # ACG/CGT and GTA/TAC are reverse-complement pairs
        assert counts == {6: 4, 44: 2}

    def test_window_count(self, records):
        counts = count_kmers(records, 4)
        assert sum(counts.values()) == sum(len(seq) - 4 + 1 for _, seq in records)

    def test_counts_are_global_across_sequences(self):
        counts = count_kmers([('a', b'ACGT'), ('b', b'ACGT')], 4)
        assert counts == {27: 2}

    def test_order_independent(self, records):
        forward = count_kmers(records, 5)
        backward = count_kmers(list(reversed(records)), 5)
        assert forward == backward

    def test_short_sequence_gives_no_windows(self):
        assert count_kmers([('s', b'AC')], 3) == {}
        assert count_kmers([('s', b'')], 3) == {}

    def test_short_sequence_logs_warning(self, caplog):
        with caplog.at_level('WARNING', logger='asmcheck.kmer'):
            count_kmers([('tiny', b'AC')], 3)
        assert 'tiny' in caplog.text

    def test_exact_length_gives_one_window(self):
        assert count_kmers([('s', b'ACG')], 3) == {6: 1}

    def test_accumulates_into_given_table(self):
        table = {6: 10}
        result = count_kmers([('s', b'ACG')], 3, counts=table)
        assert result is table
        assert table == {6: 11}

    def test_invalid_k(self):
        with pytest.raises(InvalidConfiguration):
            count_kmers([('s', b'ACGT')], 0)
        with pytest.raises(InvalidConfiguration):
            count_kmers([('s', b'ACGT')], 33)

    def test_iter_window_indexes(self):
        assert list(iter_window_indexes(b'ACGTACGT', 3)) == [6, 27, 49, 44, 6, 27]


class TestMergeCounts:
    def test_shards_reduce_to_whole(self, records):
        whole = count_kmers(records, 4)
        shards = [count_kmers([rec], 4) for rec in records]
        assert merge_counts(*shards) == whole

    def test_inputs_untouched(self):
        a = {1: 1}
        b = {1: 2, 3: 1}
        assert merge_counts(a, b) == {1: 3, 3: 1}
        assert a == {1: 1}

    def test_empty(self):
        assert merge_counts() == {}


# ---------------------------------------------------------------------------
# Histogram and spectrum
# ---------------------------------------------------------------------------


class TestHistogram:
    def test_histogram_sorted_by_occurrence(self):
        assert kmer_histogram({6: 2, 27: 2, 49: 1, 44: 1, 7: 5}) == [
            (1, 2),
            (2, 2),
            (5, 1),
        ]

    def test_empty_histogram(self):
        assert kmer_histogram({}) == []

    def test_spectrum_single_k(self):
        rows = list(kmer_spectrum([('s', b'ACGTACGT')], min_k=3, max_k=3))
        assert rows == [SpectrumRow(3, 1, 2), SpectrumRow(3, 2, 2)]

    def test_spectrum_rows_ordered_by_k(self, records):
        rows = list(kmer_spectrum(records, min_k=2, max_k=5))
        ks = [row.k for row in rows]
        assert ks == sorted(ks)
        assert set(ks) == {2, 3, 4, 5}

    def test_spectrum_accounts_for_every_window(self, records):
        rows = list(kmer_spectrum(records, min_k=3, max_k=3))
        total = sum(row.occurrences * row.n_kmers for row in rows)
        assert total == sum(len(seq) - 2 for _, seq in records)

    def test_spectrum_inverted_range_raises(self):
        with pytest.raises(InvalidConfiguration):
            list(kmer_spectrum([('s', b'ACGT')], min_k=5, max_k=4))

    def test_spectrum_row_to_line(self):
        assert SpectrumRow(13, 2, 40).to_line() == '13\t2\t40'
