"""Property-based tests for duration handling in grace periods and timeouts."""

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from pgosup.config import RelayConfig
from pgosup.time.delta import InvalidDurationError, delta_str, delta_to_secs

_UNITS = {"d": 86400, "h": 3600, "m": 60, "s": 1}


@pytest.mark.property
@pytest.mark.unit
class TestDurationProperties:
    """Durations as operators write them in configuration."""

    @given(
        parts=st.dictionaries(
            keys=st.sampled_from(list(_UNITS)),
            values=st.integers(min_value=1, max_value=500),
            min_size=1,
        )
    )
    def test_components_sum(self, parts: dict[str, int]) -> None:
        """A d/h/m/s string parses to the sum of its components."""
        text = "".join(f"{parts[u]}{u}" for u in _UNITS if u in parts)
        expected = sum(v * _UNITS[u] for u, v in parts.items())
        assert delta_to_secs(text) == expected

    @given(secs=st.floats(min_value=0.001, max_value=7 * 86400, allow_nan=False))
    @settings(max_examples=100)
    def test_rendered_duration_reparses(self, secs: float) -> None:
        """What the logs show for a duration can be pasted back into config."""
        parsed = delta_to_secs(delta_str(secs))
        assert abs(parsed - secs) < max(secs * 0.01, 1.0)

    @given(text=st.text(max_size=40))
    @settings(max_examples=200)
    def test_parse_never_crashes(self, text: str) -> None:
        """Arbitrary input either parses to a non-negative value or is rejected."""
        try:
            assert delta_to_secs(text) >= 0
        except InvalidDurationError:
            pass

    @given(secs=st.integers(min_value=1, max_value=3600))
    def test_grace_period_string_and_number_agree(self, secs: int) -> None:
        """A grace period means the same thing as "<n>s" or as a number."""
        assume(secs > 0)
        assert (
            RelayConfig(grace_period=f"{secs}s").grace_period
            == RelayConfig(grace_period=secs).grace_period
        )
