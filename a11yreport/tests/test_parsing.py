from a11yreport.enrichment.parsing import parse_batch_response, strip_think_tags
from a11yreport.enrichment.prompts import MISSING_ITEM_PLACEHOLDER


def test_strip_think_tags_removes_closed_blocks():
    text = "<think>hidden reasoning</think>\n1. Ответ <think>more</think>готов"
    assert strip_think_tags(text) == "1. Ответ готов"


def test_strip_think_tags_drops_unterminated_block_to_end():
    assert strip_think_tags("1. Видимый текст\n<think>never closed\n2. lost") == "1. Видимый текст"


def test_strip_think_tags_without_tags_only_trims():
    assert strip_think_tags("  plain  \n") == "plain"


def test_parse_batch_response_aligns_numbered_items():
    content = (
        "1. Изображение без alt.\n"
        "   Решение: добавьте alt.\n"
        "2. Низкий контраст.\n"
        "   Решение: увеличьте контраст.\n"
    )

    results = parse_batch_response(content, 2)

    assert results == [
        "Изображение без alt. Решение: добавьте alt.",
        "Низкий контраст. Решение: увеличьте контраст.",
    ]


def test_parse_batch_response_discards_preamble_and_fills_gaps():
    content = "Вот перевод:\nвступление\n2. Только второй пункт\n"

    results = parse_batch_response(content, 3)

    assert results == [MISSING_ITEM_PLACEHOLDER, "Только второй пункт", MISSING_ITEM_PLACEHOLDER]


def test_parse_batch_response_appends_out_of_range_numbers_to_open_item():
    content = "1. Первый\n11. не пункт, а продолжение\n2. Второй"

    results = parse_batch_response(content, 2)

    assert results[0] == "Первый 11. не пункт, а продолжение"
    assert results[1] == "Второй"


def test_parse_batch_response_handles_two_digit_numbers():
    content = "\n".join(f"{i}. пункт {i}" for i in range(1, 11))

    results = parse_batch_response(content, 10)

    assert results[0] == "пункт 1"
    assert results[9] == "пункт 10"


def test_parse_batch_response_strips_think_before_parsing():
    content = "<think>1. не тот ответ</think>\n1. правильный ответ"
    assert parse_batch_response(content, 1) == ["правильный ответ"]


def test_parse_batch_response_output_length_matches_batch_size():
    replies = [
        "",
        "garbage without numbers",
        "1. one",
        "3. three\n1. one\n",
        "<think>unterminated",
        "1.\n2.\n",
    ]
    for size in range(0, 11):
        for reply in replies:
            results = parse_batch_response(reply, size)
            assert len(results) == size
            assert all(item.strip() for item in results)
