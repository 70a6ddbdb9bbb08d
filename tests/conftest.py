import sys
from pathlib import Path
from textwrap import dedent

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))


SAMPLE_EXPORT = dedent(
    """\
    brand;category_code;event_time;event_type;price;product_id;user_id;user_session
    Acme;electronics.phones.android;2023-01-05;purchase;199,99;p1;u1;s1
    Zeta;electronics.phones.android;2023-01-06;purchase;299,00;p2;u2;s2
    Acme;books;2023-06-01;view;9,99;p3;u3;s3
    """
)


@pytest.fixture
def sample_export() -> str:
    return SAMPLE_EXPORT


@pytest.fixture
def sample_filter() -> dict:
    return {"period": {"start": "2023-01-01", "end": "2023-01-31"}}
