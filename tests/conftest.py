import pytest

import clinic_state


@pytest.fixture
def state():
    """Freshly seeded session state, logged out."""
    data = {}
    clinic_state.init_state(data)
    return data


def _login_as(state, user_id, pin):
    success, _ = clinic_state.login(state, user_id, pin)
    assert success
    return state


@pytest.fixture
def admin_state(state):
    return _login_as(state, "1", "1234")


@pytest.fixture
def reception_state(state):
    return _login_as(state, "2", "0000")


@pytest.fixture
def doctor_state(admin_state):
    clinic_state.create_user(admin_state, "Dra. Ana", "DOCTOR", "ana@clinica.com", "4321")
    doctor = admin_state["users"][-1]
    return _login_as(admin_state, doctor["id"], "4321")
