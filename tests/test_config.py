from smpaq.config import PsiAnalyticsContext, PsmType, Role, Timings


def test_copy_is_equal_but_independent():
    context = PsiAnalyticsContext(index=3, port=8000)
    clone = context.copy()
    assert clone == context
    clone.timings.oprf1 = 12.5
    clone.sci_io_start.append(4)
    clone.index = 7
    assert context.timings.oprf1 == 0.0
    assert context.sci_io_start == []
    assert context.index == 3


def test_timings_start_at_zero():
    timings = Timings()
    assert all(value == 0.0 for value in vars(timings).values())


def test_psm_type_parses_names():
    assert PsmType("SMPAQ2") is PsmType.SMPAQ2


def test_unknown_psm_type_rejected():
    import pytest

    with pytest.raises(ValueError):
        PsmType("SMPAQ3")


def test_role_from_wire_value():
    assert Role(1) is Role.CLIENT