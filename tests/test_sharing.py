from itertools import combinations
from random import Random

import pytest

from idwallet.bls12381 import curve_order, g1_point, scale
from idwallet.errors import PolicyError
from idwallet.sharing import evaluate, lagrange_at_zero, reveal, reveal_in_exponent, share

G = g1_point(1)


def test_any_threshold_subset_reveals():
    secret = 987654321
    coefficients, shares = share(secret, 2, [1, 2, 3], Random(1))
    assert coefficients[0] == secret
    assert len(coefficients) == 2
    for subset in combinations(shares, 2):
        assert reveal({x: shares[x] for x in subset}) == secret


def test_fewer_shares_do_not_reveal():
    secret = 55
    _, shares = share(secret, 3, [1, 2, 3, 4], Random(2))
    assert reveal({1: shares[1], 2: shares[2]}) != secret


def test_threshold_one_is_replication():
    _, shares = share(7, 1, [4, 9], Random(3))
    assert shares == {4: 7, 9: 7}


def test_reveal_in_exponent():
    secret = 31337
    _, shares = share(secret, 2, [2, 5, 11], Random(4))
    points = {x: scale(G, s) for x, s in shares.items() if x != 5}
    assert reveal_in_exponent(points) == scale(G, secret)


def test_lagrange_weights_sum_to_one():
    assert sum(lagrange_at_zero([1, 2, 3]).values()) % curve_order == 1
    assert reveal({1: 1, 2: 1, 3: 1}) == 1


def test_evaluate():
    assert evaluate([1, 2, 3], 2) == 1 + 4 + 12


def test_invalid_policy():
    with pytest.raises(PolicyError):
        share(1, 0, [1, 2])
    with pytest.raises(PolicyError):
        share(1, 3, [1, 2])
    with pytest.raises(PolicyError):
        share(1, 1, [0, 1])


if __name__ == "__main__":
    pytest.main()
