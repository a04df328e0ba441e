from datetime import timedelta

from shopmata.formatting import format_money, percent_change, pluralize, share, time_ago
from tests.conftest import NOW


def test_format_money():
    assert format_money(1234.4) == "$1,234"
    assert format_money(150, 2) == "$150.00"
    assert format_money(None) == "$0"
    assert format_money(-5) == "-$5"
    assert format_money(20, signed=True) == "+$20"
    assert format_money(-20, signed=True) == "-$20"


def test_format_money_does_not_show_negative_zero():
    assert format_money(-0.001, 2) == "$0.00"


def test_percent_change():
    assert percent_change(200, 450) == 125.0
    assert percent_change(100, 50) == -50.0
    assert percent_change(0, 10) == 100.0
    assert percent_change(0, 0) == 0.0


def test_share():
    assert share(1, 3) == 33.3
    assert share(5, 0) == 0
    assert share(2, 3, 0) == 67


def test_pluralize():
    assert pluralize(1, "return") == "1 return"
    assert pluralize(0, "return") == "0 returns"
    assert pluralize(3, "item") == "3 items"


def test_time_ago():
    assert time_ago(NOW, NOW) == "just now"
    assert time_ago(NOW - timedelta(minutes=5), NOW) == "5 minutes ago"
    assert time_ago(NOW - timedelta(hours=1), NOW) == "1 hour ago"
    assert time_ago(NOW - timedelta(days=3), NOW) == "3 days ago"
    assert time_ago(NOW + timedelta(days=1), NOW) == "just now"
