import typing as t

import pytest

from common.authentication import is_payment_admin
from conftest import TicketUserFactory

pytestmark = pytest.mark.django_db


def test_staff_is_payment_admin(user_factory: TicketUserFactory) -> None:
    assert is_payment_admin(user_factory(is_staff=True))


def test_superuser_is_payment_admin(user_factory: TicketUserFactory) -> None:
    assert is_payment_admin(user_factory(is_superuser=True))


def test_listed_email_is_payment_admin(user_factory: TicketUserFactory, settings: t.Any) -> None:
    settings.ADMIN_EMAILS = [" Ops@Tickets.test ", ""]

    assert is_payment_admin(user_factory(email="ops@tickets.test"))


def test_regular_user_is_not_payment_admin(user_factory: TicketUserFactory, settings: t.Any) -> None:
    settings.ADMIN_EMAILS = ["ops@tickets.test"]

    assert not is_payment_admin(user_factory(email="someone@tickets.test"))
    assert not is_payment_admin(user_factory(email=""))
