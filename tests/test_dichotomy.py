import pytest

from tilestitch.dichotomy import Dichotomy, Dichotomy2d


def test_dichotomy1d():
    for mystery in range(1000):
        d = Dichotomy()
        tries = 1
        while d.next(d.best_guess() <= mystery) is not None:
            tries += 1
            assert tries <= 20, f"too many tries for {mystery}"
        assert d.best_guess() == mystery


@pytest.mark.parametrize("x", range(10))
@pytest.mark.parametrize("y", range(10))
def test_dichotomy2d(x, y):
    d = Dichotomy2d()
    tries = 1
    guess = (1, 1)
    while (g := d.next(guess[0] <= x and guess[1] <= y)) is not None:
        guess = g
        tries += 1
        assert tries <= 20, f"guessed {g} on try {tries}"
    assert guess == (x, y)


def test_dichotomy_initial_guess_grows():
    d = Dichotomy()
    assert d.best_guess() == 1
    assert d.next(True) == 4
    assert d.next(True) == 13
    assert d.next(False) == 8