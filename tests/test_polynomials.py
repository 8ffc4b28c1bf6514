import pytest

from algebraic_numbers import ConfigurationError, enumerate_polynomials, polynomials_of_height
from algebraic_numbers.polynomials import decode_magnitudes


def _coefficients(items):
    return [tuple(int(c.real) for c in item.coefficients) for item in items]


def test_decode_magnitudes():
    # 0b101 over height 4: one unit, advance, one unit
    assert decode_magnitudes(0b101, 4) == [1, 1]
    assert decode_magnitudes(0b011, 4) == [0, 2]
    assert decode_magnitudes(0b001, 4) == [0, 0, 1]
    assert decode_magnitudes(0b111, 4) == [3]


def test_height_two_has_no_polynomials():
    # the only odd pattern decodes to a constant
    assert list(polynomials_of_height(2)) == []


def test_height_three_is_x():
    items = list(polynomials_of_height(3))
    assert _coefficients(items) == [(0, 1)]
    assert items[0].degree == 1
    assert items[0].leading_magnitude == 1


def test_height_four_by_hand():
    items = list(polynomials_of_height(4))
    assert set(_coefficients(items)) == {(1, 1), (-1, 1), (0, 2), (0, 0, 1)}
    assert len(items) == 4


def test_height_five_count():
    items = list(polynomials_of_height(5))
    assert len(items) == 11
    assert (0, 0, 0, 1) in _coefficients(items)
    assert (-2, 1) in _coefficients(items)


def test_enumeration_invariants():
    items = list(enumerate_polynomials(10))
    coefficient_sets = _coefficients(items)

    assert len(coefficient_sets) == len(set(coefficient_sets))
    for item, coefficients in zip(items, coefficient_sets):
        assert item.degree >= 1
        assert len(coefficients) == item.degree + 1
        assert coefficients[-1] > 0
        assert coefficients[-1] == item.leading_magnitude
        assert sum(abs(c) for c in coefficients) + item.degree + 1 == item.height
        assert all(c.imag == 0 for c in item.coefficients)


def test_no_sign_pair_duplicates():
    coefficient_sets = set(_coefficients(enumerate_polynomials(9)))
    for coefficients in coefficient_sets:
        assert tuple(-c for c in coefficients) not in coefficient_sets


def test_enumerator_is_restartable():
    enumerator = enumerate_polynomials(7)
    first = list(enumerator)
    second = list(enumerator)
    assert first == second
    assert {item.height for item in first} == {3, 4, 5, 6, 7}


def test_enumerator_covers_heights_in_order():
    heights = [item.height for item in enumerate_polynomials(8)]
    assert heights == sorted(heights)


def test_rejects_low_max_height():
    with pytest.raises(ConfigurationError):
        enumerate_polynomials(1)
