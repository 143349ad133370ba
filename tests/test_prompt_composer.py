from app.chat.entity.chat import ChatMessage
from app.chat.service.prompt_composer import build_payload, compose_instruction, format_search_context
from app.search.entity.search import SearchResult


def result(n: int, snippet: str = "") -> SearchResult:
    return SearchResult(title=f"Title {n}", url=f"https://example.com/{n}", snippet=snippet or f"snippet {n}")


def test_two_results_give_two_numbered_entries():
    context = format_search_context([result(1), result(2)])

    assert context == (
        "1. Title 1\nURL: https://example.com/1\nSummary: snippet 1"
        "\n\n"
        "2. Title 2\nURL: https://example.com/2\nSummary: snippet 2"
    )


def test_context_is_limited_to_three_results():
    context = format_search_context([result(n) for n in range(1, 6)])

    assert "3. Title 3" in context
    assert "4. " not in context


def test_snippets_are_capped():
    context = format_search_context([result(1, snippet="x" * 800)])

    assert "x" * 500 in context
    assert "x" * 501 not in context


def test_instruction_passthrough_without_results():
    assert compose_instruction("guide", []) == "guide"
    assert compose_instruction("guide", None) == "guide"
    assert compose_instruction(None, []) is None
    assert compose_instruction("", None) is None


def test_instruction_appends_context_block():
    instruction = compose_instruction("guide", [result(1)])

    head, _, rest = instruction.partition("\n\n")
    assert head == "guide"
    assert rest.startswith("[Web search context]\n1. Title 1")
    assert rest.rstrip().endswith("list the source URLs at the end of the answer.")


def test_instruction_without_system_prompt_is_context_only():
    instruction = compose_instruction(None, [result(1)])

    assert instruction.startswith("[Web search context]")


def test_payload_maps_roles_and_keeps_order():
    history = [ChatMessage.user("q1"), ChatMessage.assistant("a1"), ChatMessage.user("q2")]

    payload = build_payload(history, "guide")

    assert payload["contents"] == [
        {"role": "user", "parts": [{"text": "q1"}]},
        {"role": "model", "parts": [{"text": "a1"}]},
        {"role": "user", "parts": [{"text": "q2"}]},
    ]
    assert payload["systemInstruction"] == {"parts": [{"text": "guide"}]}
