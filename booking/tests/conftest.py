import pytest

from .factories import make_escort, make_hospital, make_patient, make_service, make_user


@pytest.fixture
def user(db):
    return make_user()


@pytest.fixture
def patient(user):
    return make_patient(user)


@pytest.fixture
def hospital(db):
    return make_hospital()


@pytest.fixture
def service(db):
    return make_service()


@pytest.fixture
def escort(db):
    return make_escort()
