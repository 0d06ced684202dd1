"""Tests for presentation helpers in core.charts."""

from core.charts import chips_html


def test_chips_html_escapes_dataset_text():
    out = chips_html(["<img src=x onerror=alert(1)> & Co", "", None, "WINE"])

    assert "<img" not in out
    assert "&lt;img src=x onerror=alert(1)&gt; &amp; Co" in out
    assert out.count("<span class='chip'>") == 2


def test_chips_html_custom_class():
    assert chips_html(["Firebase config needed"], "chip warning") == (
        "<span class='chip warning'>Firebase config needed</span>"
    )
