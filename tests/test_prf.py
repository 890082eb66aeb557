import pytest

from idwallet.bls12381 import curve_order, g1_point, scale
from idwallet.errors import PrfOutOfDomain
from idwallet.prf import prf, prf_exponent

G = g1_point(1)


def test_prf_exponent_inverts_key_plus_input():
    key = 123456789
    for n in (0, 1, 24):
        assert prf_exponent(key, n) * (key + n) % curve_order == 1


def test_prf_is_deterministic():
    assert prf(G, 1111, 3) == prf(G, 1111, 3)
    assert prf(G, 1111, 3) != prf(G, 1111, 4)
    assert prf(G, 1111, 3) == scale(G, prf_exponent(1111, 3))


def test_out_of_domain():
    key = curve_order - 5
    with pytest.raises(PrfOutOfDomain):
        prf_exponent(key, 5)
    with pytest.raises(PrfOutOfDomain):
        prf(G, key, 5)
    assert prf_exponent(key, 6) == 1


if __name__ == "__main__":
    pytest.main()
