from neis_lib.parser import parse_dishes


def test_numbering_and_allergy_notes_are_removed():
    assert parse_dishes("1.김치찌개(알러지유발)<br/>2.현미밥") == ["김치찌개", "현미밥"]


def test_neis_allergy_codes_in_parentheses():
    text = "기장밥 <br/>돼지고기김치찌개 (5.9.10.13.)<br/>계란말이 (1.5.)"
    assert parse_dishes(text) == ["기장밥", "돼지고기김치찌개", "계란말이"]


def test_digits_without_period_are_kept():
    assert parse_dishes("3색나물<br/>우유 200ml") == ["3색나물", "우유 200ml"]


def test_every_parenthetical_is_removed():
    assert parse_dishes("닭강정(국내산)(1.5.6.) 소스(매콤)") == ["닭강정 소스"]


def test_line_break_variants():
    text = "밥<BR>국<br />김치<br/>과일"
    assert parse_dishes(text) == ["밥", "국", "김치", "과일"]


def test_plain_newlines_split_entries():
    assert parse_dishes("밥\n국") == ["밥", "국"]


def test_blank_entries_are_dropped():
    assert parse_dishes("<br/><br/>  밥  <br/> <br/>(5.6.)") == ["밥"]


def test_order_and_duplicates_are_preserved():
    assert parse_dishes("현미밥<br/>김치<br/>현미밥") == ["현미밥", "김치", "현미밥"]


def test_empty_input():
    assert parse_dishes("") == []
    assert parse_dishes(None) == []
