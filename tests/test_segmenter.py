"""Tests for section splitting and the marker scanner."""

from nlsync.parsing import MarkerKind, MarkerScanner, split_sections


def test_body_without_breaks_is_one_section() -> None:
    body = "<h6 id='a'>Brasil</h6><h1>Título</h1><p>texto</p>"

    sections = split_sections(body)

    assert len(sections) == 1
    assert sections[0].index == 0
    assert sections[0].markup == body


def test_sections_split_on_content_breaks() -> None:
    body = 'um<hr class="content_break">dois<hr class="content_break"/>três'

    sections = split_sections(body)

    assert [s.markup for s in sections] == ["um", "dois", "três"]
    assert [s.index for s in sections] == [0, 1, 2]
    assert body[sections[1].start:sections[1].end] == "dois"


def test_only_rules_with_the_break_class_split() -> None:
    body = 'um<hr class="divider">dois<hr class="wide content_break">três'

    sections = split_sections(body)

    assert [s.markup for s in sections] == ['um<hr class="divider">dois', "três"]


def test_break_class_is_configurable() -> None:
    body = 'um<hr class="content_break">dois<hr class="secao">três'

    sections = split_sections(body, break_class="secao")

    assert [s.markup for s in sections] == ['um<hr class="content_break">dois', "três"]


def test_empty_body_is_one_empty_section() -> None:
    sections = split_sections("")

    assert len(sections) == 1
    assert sections[0].markup == ""


def test_category_markers_require_an_id() -> None:
    scanner = MarkerScanner('<h6>Sem id</h6><h6 id="mundo">Mundo</h6>')

    marker = scanner.find_next(MarkerKind.CATEGORY)

    assert marker is not None
    assert marker.text == "Mundo"
    assert marker.marker_id == "mundo"


def test_title_id_is_optional_and_inline_tags_are_stripped() -> None:
    scanner = MarkerScanner("<h1><strong>Título</strong> em destaque</h1>")

    marker = scanner.find_next(MarkerKind.TITLE)

    assert marker is not None
    assert marker.text == "Título em destaque"
    assert marker.marker_id == ""


def test_headings_without_visible_text_are_not_titles() -> None:
    markup = "<h1> </h1><h1 id='x'>Real</h1>"
    scanner = MarkerScanner(markup)

    assert scanner.find_next(MarkerKind.TITLE).text == "Real"
    assert len(list(scanner.iter_markers(MarkerKind.TITLE_START))) == 2


def test_find_next_respects_offset() -> None:
    markup = "<h1>Primeiro</h1><h1>Segundo</h1>"
    scanner = MarkerScanner(markup)
    first = scanner.find_next(MarkerKind.TITLE)

    second = scanner.find_next(MarkerKind.TITLE, first.end)

    assert second.text == "Segundo"
    assert scanner.find_next(MarkerKind.TITLE, second.end) is None
