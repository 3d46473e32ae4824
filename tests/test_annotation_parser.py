"""Tests for the annotation scanner.

Covers:
- Plain text passthrough
- Ruby (implicit base, explicit ｜ base, gaiji base, no base)
- Block directives (indent, bold, emphasis, warichu, center, headings)
- Recovery: unknown, mismatched, unterminated and unmatched notation
- Gaiji, repeat marks, accent decomposition
- Kunten positions
"""

from __future__ import annotations

from types import MappingProxyType

import pytest

from aozorize.parser.annotation_parser import AnnotationParser
from aozorize.parser.base import (
    CenterAlign,
    Emphasis,
    EmphasisKind,
    ExternalChar,
    Heading,
    HeadingLevel,
    HeadingStyle,
    Image,
    IndentBlock,
    IndentStyle,
    Kunten,
    KuntenMark,
    PageBreak,
    PageBreakKind,
    PlainText,
    Ruby,
    UnknownAnnotation,
    Warichu,
    WarningKind,
    text_content,
)
from aozorize.parser.tables import MappingTables


@pytest.fixture()
def parser(tables: MappingTables) -> AnnotationParser:
    return AnnotationParser(tables)


def _tables_with_jis(tables: MappingTables, jis: dict) -> MappingTables:
    return MappingTables(
        jis=MappingProxyType(jis),
        descriptions=tables.descriptions,
        variant_kana=tables.variant_kana,
        accents=tables.accents,
        repeat_marks=tables.repeat_marks,
    )


def _kinds(result) -> list[WarningKind]:
    return [warning.kind for warning in result.warnings]


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------

def test_clean_input_is_single_plain_text(parser: AnnotationParser) -> None:
    text = "吾輩は猫である。\n名前はまだ無い。\r\nどこで生れたか。"
    result = parser.parse_text(text)

    assert result.segments == [PlainText(text)]
    assert result.warnings == []


def test_empty_input(parser: AnnotationParser) -> None:
    result = parser.parse_text("")
    assert result.segments == []
    assert result.warnings == []


# ---------------------------------------------------------------------------
# Ruby
# ---------------------------------------------------------------------------

def test_ruby_whole_input(parser: AnnotationParser) -> None:
    assert parser.parse_text("漢字《かんじ》").segments == [Ruby(base="漢字", reading="かんじ")]


def test_implicit_ruby_takes_same_class_run(parser: AnnotationParser) -> None:
    result = parser.parse_text("これは漢字《かんじ》です")
    assert result.segments == [PlainText("これは"), Ruby(base="漢字", reading="かんじ"), PlainText("です")]


def test_explicit_ruby_base(parser: AnnotationParser) -> None:
    result = parser.parse_text("東京｜大阪府《おおさかふ》")
    assert result.segments == [PlainText("東京"), Ruby(base="大阪府", reading="おおさかふ")]


def test_explicit_ruby_base_spans_mixed_script(parser: AnnotationParser) -> None:
    result = parser.parse_text("｜ロンドン塔《タワー》へ")
    assert result.segments == [Ruby(base="ロンドン塔", reading="タワー"), PlainText("へ")]


def test_ruby_without_base_is_kept_literally(parser: AnnotationParser) -> None:
    result = parser.parse_text("《よみ》だけ")
    assert result.segments == [PlainText("《よみ》だけ")]


def test_unclosed_ruby_is_literal(parser: AnnotationParser) -> None:
    result = parser.parse_text("漢字《かんじ\n次")
    assert result.segments == [PlainText("漢字《かんじ\n次")]


def test_ruby_on_external_char(tables: MappingTables) -> None:
    parser = AnnotationParser(_tables_with_jis(tables, {(1, 94, 68): "鯡"}))
    result = parser.parse_text("※［＃「魚＋非」、第3水準1-94-68］《にしん》")
    assert result.segments == [Ruby(base="鯡", reading="にしん")]


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

def test_indent_block(parser: AnnotationParser) -> None:
    result = parser.parse_text("普通の［＃ここから２字下げ］字下げされた文［＃ここで字下げ終わり］文章")

    assert result.segments == [
        PlainText("普通の"),
        IndentBlock(level=2, children=[PlainText("字下げされた文")]),
        PlainText("文章"),
    ]
    assert result.warnings == []


def test_indent_with_wrap_level(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃ここから３字下げ、折り返して４字下げ］本文［＃ここで字下げ終わり］")
    assert result.segments == [IndentBlock(level=3, wrap_level=4, children=[PlainText("本文")])]


def test_single_line_indent_closes_at_newline(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃３字下げ］一行目\n二行目")

    assert result.segments == [IndentBlock(level=3, children=[PlainText("一行目")]), PlainText("\n二行目")]
    assert result.warnings == []


def test_bottom_and_raise_alignment(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃地付き］署名\n［＃地から２字上げ］日付")

    assert result.segments == [
        IndentBlock(level=0, style=IndentStyle.CENTERED_BOTTOM, children=[PlainText("署名")]),
        PlainText("\n"),
        IndentBlock(level=2, style=IndentStyle.CENTERED_ALIGN, children=[PlainText("日付")]),
    ]


def test_emphasis_with_nested_ruby(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃傍点］漢字《かんじ》［＃傍点終わり］")
    assert result.segments == [
        Emphasis(kind=EmphasisKind.DOT, style="sesame_dot", children=[Ruby(base="漢字", reading="かんじ")])
    ]


def test_left_side_line_emphasis(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃左に傍線］線［＃左に傍線終わり］")
    assert result.segments == [
        Emphasis(kind=EmphasisKind.LINE, style="solid", side="left", children=[PlainText("線")])
    ]


def test_bold_block(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃ここから太字］太い［＃ここで太字終わり］")
    assert result.segments == [Emphasis(kind=EmphasisKind.BOLD, children=[PlainText("太い")])]


def test_emphasis_wraps_preceding_text(parser: AnnotationParser) -> None:
    result = parser.parse_text("吾輩は猫［＃「猫」に傍点］である")
    assert result.segments == [
        PlainText("吾輩は"),
        Emphasis(kind=EmphasisKind.DOT, style="sesame_dot", children=[PlainText("猫")]),
        PlainText("である"),
    ]


def test_heading_wraps_preceding_text(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃８字下げ］一［＃「一」は中見出し］\n本文")

    indent = result.segments[0]
    assert isinstance(indent, IndentBlock)
    assert indent.children == [
        Heading(style=HeadingStyle.NORMAL, level=HeadingLevel.MEDIUM, children=[PlainText("一")])
    ]
    assert result.segments[1:] == [PlainText("\n本文")]


def test_heading_block(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃窓大見出し］序［＃窓大見出し終わり］")
    assert result.segments == [
        Heading(style=HeadingStyle.WINDOW, level=HeadingLevel.LARGE, children=[PlainText("序")])
    ]


def test_warichu(parser: AnnotationParser) -> None:
    result = parser.parse_text("本文［＃割り注］注の内容［＃割り注終わり］続き")

    assert result.segments == [PlainText("本文"), Warichu(children=[PlainText("注の内容")]), PlainText("続き")]
    assert result.segments[1].text == "注の内容"


def test_center_align_closes_at_page_break(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃ページの左右中央］中央［＃改ページ］次")

    assert result.segments == [
        CenterAlign(children=[PlainText("中央")]),
        PageBreak(kind=PageBreakKind.NEW_PAGE),
        PlainText("次"),
    ]
    assert result.warnings == []


def test_page_break_kinds(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃改丁］［＃改見開き］［＃改段］")
    assert [segment.kind for segment in result.segments] == [
        PageBreakKind.NEW_SIGNATURE,
        PageBreakKind.NEW_SPREAD,
        PageBreakKind.NEW_COLUMN,
    ]


def test_image(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃挿絵（fig1.png、横320×縦240）入る］")
    assert result.segments == [Image(path="fig1.png", alt="挿絵")]


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------

def test_unknown_directive_is_kept(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃謎の注記］続く文章")

    assert result.segments == [UnknownAnnotation(raw="［＃謎の注記］"), PlainText("続く文章")]
    assert _kinds(result) == [WarningKind.UNRECOGNIZED_DIRECTIVE]


def test_mismatched_close_becomes_unknown(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃ここから２字下げ］本文［＃ここで地付き終わり］続き［＃ここで字下げ終わり］")

    assert result.segments == [
        IndentBlock(
            level=2,
            children=[PlainText("本文"), UnknownAnnotation(raw="［＃ここで地付き終わり］"), PlainText("続き")],
        )
    ]
    assert _kinds(result) == [WarningKind.MISMATCHED_CLOSE]


def test_close_without_open(parser: AnnotationParser) -> None:
    result = parser.parse_text("本文［＃ここで字下げ終わり］")
    assert result.segments == [PlainText("本文"), UnknownAnnotation(raw="［＃ここで字下げ終わり］")]
    assert _kinds(result) == [WarningKind.MISMATCHED_CLOSE]


def test_unterminated_block_is_closed_with_one_warning(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃ここから２字下げ］［＃ここから太字］太い")

    assert result.segments == [
        IndentBlock(level=2, children=[Emphasis(kind=EmphasisKind.BOLD, children=[PlainText("太い")])])
    ]
    assert _kinds(result) == [WarningKind.UNTERMINATED_BLOCK]


def test_unterminated_bracket_is_literal(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃閉じない\n次")
    assert result.segments == [PlainText("［＃閉じない\n次")]
    assert _kinds(result) == [WarningKind.UNTERMINATED_BRACKET]


def test_unmatched_wrap_target(parser: AnnotationParser) -> None:
    result = parser.parse_text("本文［＃「存在しない」に傍点］")
    assert result.segments == [PlainText("本文"), UnknownAnnotation(raw="［＃「存在しない」に傍点］")]
    assert _kinds(result) == [WarningKind.UNMATCHED_TARGET]


def test_empty_directive_is_literal(parser: AnnotationParser) -> None:
    assert parser.parse_text("記号［＃］の説明").segments == [PlainText("記号［＃］の説明")]


def test_deep_nesting_does_not_recurse(parser: AnnotationParser) -> None:
    depth = 3000
    result = parser.parse_text("［＃ここから太字］" * depth + "底")

    assert text_content(result.segments[0]) == "底"
    assert _kinds(result) == [WarningKind.UNTERMINATED_BLOCK]


# ---------------------------------------------------------------------------
# Corrections
# ---------------------------------------------------------------------------

def test_correction_note_keeps_only_original(parser: AnnotationParser) -> None:
    assert parser.parse_text("［＃「誤字」はママ］").segments == [PlainText("誤字")]


def test_correction_note_after_text_is_dropped(parser: AnnotationParser) -> None:
    assert parser.parse_text("誤字［＃「誤字」はママ］です").segments == [PlainText("誤字です")]


def test_ruby_correction_note_is_dropped(parser: AnnotationParser) -> None:
    result = parser.parse_text("漢字《かんじ》［＃ルビの「かんじ」はママ］")
    assert result.segments == [Ruby(base="漢字", reading="かんじ")]
    assert result.warnings == []


# ---------------------------------------------------------------------------
# Characters
# ---------------------------------------------------------------------------

def test_repeat_marks(parser: AnnotationParser) -> None:
    assert parser.parse_text("こころ／＼と").segments == [PlainText("こころ〱と")]
    assert parser.parse_text("しみ／″＼と").segments == [PlainText("しみ〲と")]


def test_external_char_resolved_and_unresolved(tables: MappingTables) -> None:
    notation = "※［＃「魚＋非」、第3水準1-94-68］"

    found = AnnotationParser(_tables_with_jis(tables, {(1, 94, 68): "鯡"})).parse_text(notation)
    assert found.segments == [ExternalChar(resolved="鯡", raw=notation)]

    missing = AnnotationParser(_tables_with_jis(tables, {})).parse_text(notation)
    assert missing.segments == [ExternalChar(resolved=None, raw=notation)]
    assert missing.warnings == []


def test_external_char_by_description(parser: AnnotationParser) -> None:
    notation = "※［＃二の字点、1-2-22］"
    assert parser.parse_text(f"各{notation}").segments == [PlainText("各"), ExternalChar(resolved="〻", raw=notation)]


def test_accent_decomposition(parser: AnnotationParser) -> None:
    assert parser.parse_text("〔e'te'〕の話").segments == [PlainText("étéの話")]


def test_bracket_without_accents_is_literal(parser: AnnotationParser) -> None:
    assert parser.parse_text("〔注〕本文").segments == [PlainText("〔注〕本文")]


# ---------------------------------------------------------------------------
# Kunten
# ---------------------------------------------------------------------------

def test_kunten_positions_index_reading_text(parser: AnnotationParser) -> None:
    source = "学［＃二］而時習［＃一］之"
    result = parser.parse_text(source)

    assert result.segments == [
        PlainText("学"),
        Kunten(mark=KuntenMark.ONE_TWO, attached_to=0, value="二"),
        PlainText("而時習"),
        Kunten(mark=KuntenMark.ONE_TWO, attached_to=3, value="一"),
        PlainText("之"),
    ]
    text = "".join(text_content(segment) for segment in result.segments)
    assert text[3] == "習"


def test_kunten_re_and_okurigana(parser: AnnotationParser) -> None:
    result = parser.parse_text("不［＃レ］知［＃一レ］読［＃（ム）］")
    marks = [segment for segment in result.segments if isinstance(segment, Kunten)]

    assert marks == [
        Kunten(mark=KuntenMark.RE, attached_to=0, value="レ", re=True),
        Kunten(mark=KuntenMark.ONE_TWO, attached_to=1, value="一レ", re=True),
        Kunten(mark=KuntenMark.OKURI, attached_to=2, value="ム"),
    ]


def test_kunten_without_preceding_character(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃レ］")
    assert result.segments == [UnknownAnnotation(raw="［＃レ］")]
    assert _kinds(result) == [WarningKind.UNMATCHED_TARGET]


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def test_reading_order_is_preserved(parser: AnnotationParser) -> None:
    source = "吾輩は｜猫《ねこ》である［＃「である」に傍点］。［＃改ページ］［＃ここから２字下げ］次［＃ここで字下げ終わり］"
    result = parser.parse_text(source)

    assert "".join(text_content(segment) for segment in result.segments) == "吾輩は猫である。次"
    assert result.warnings == []


def test_wrap_level_equal_to_level_is_dropped(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃ここから２字下げ、折り返して２字下げ］本文［＃ここで字下げ終わり］")
    assert result.segments == [IndentBlock(level=2, children=[PlainText("本文")])]


def test_single_line_indent_ends_with_inner_multi_line_block(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃２字下げ］［＃ここから太字］abc\ndef［＃ここで太字終わり］ghi\njkl")

    assert result.segments == [
        IndentBlock(level=2, children=[Emphasis(kind=EmphasisKind.BOLD, children=[PlainText("abc\ndef")])]),
        PlainText("ghi\njkl"),
    ]
    assert result.warnings == []


def test_close_reaches_past_single_line_block(parser: AnnotationParser) -> None:
    result = parser.parse_text("［＃ここから２字下げ］［＃３字下げ］い［＃ここで字下げ終わり］\nえ")

    assert result.segments == [
        IndentBlock(level=2, children=[IndentBlock(level=3, children=[PlainText("い")])]),
        PlainText("\nえ"),
    ]
    assert result.warnings == []


def test_kunten_at_line_start_has_no_target(parser: AnnotationParser) -> None:
    result = parser.parse_text("学\n［＃二］")

    assert result.segments == [PlainText("学\n"), UnknownAnnotation(raw="［＃二］")]
    assert _kinds(result) == [WarningKind.UNMATCHED_TARGET]
