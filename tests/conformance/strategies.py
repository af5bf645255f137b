"""
Hypothesis strategies shared by the conformance suites.
"""

from hypothesis import strategies as st

from tests.fakes import HOLDERS, OPERATIONS


@st.composite
def operation(draw, bond_count: int = 2):
    """One (op, bond_id, actor, other, amount) step for apply_operation()."""
    actor = draw(st.sampled_from(HOLDERS))
    other = draw(st.sampled_from([h for h in HOLDERS if h != actor]))
    return (
        draw(st.sampled_from(OPERATIONS)),
        draw(st.integers(min_value=1, max_value=bond_count)),
        actor,
        other,
        draw(st.integers(min_value=1, max_value=60)),
    )


def operation_sequences(max_size: int = 40):
    return st.lists(operation(), min_size=1, max_size=max_size)
