"""Tests for prompt assembly, markdown cleanup and speech chunking."""

from datetime import date

from navi.prompt import (SpeechBuffer, build_prompt, read_daily_note,
                         read_scratchpad, strip_markdown, write_scratchpad)


def test_strip_markdown_removes_formatting() -> None:
	text = "# Title\n\n- **bold** and *soft* `code`\n> quoted [link](http://x.y)"

	assert strip_markdown(text) == "Title\nbold and soft code\nquoted link"


def test_build_prompt_appends_research_only_when_enabled() -> None:
	assert build_prompt(" question \n", "notes", True) == "question\n\nnotes"
	assert build_prompt("question", "notes", False) == "question"
	assert build_prompt("question", "   ", True) == "question"


def test_scratchpad_round_trip_and_missing_file(tmp_path) -> None:
	path = tmp_path / "pad" / "scratchpad.md"

	assert read_scratchpad(str(path)) == ""
	write_scratchpad(str(path), "remember the milk")
	assert read_scratchpad(str(path)) == "remember the milk"


def test_read_daily_note_uses_iso_date(tmp_path) -> None:
	(tmp_path / "2026-10-17.md").write_text("standup at 10", encoding="utf-8")

	assert read_daily_note(str(tmp_path), day=date(2026, 10, 17)) == "standup at 10"
	assert read_daily_note(str(tmp_path), day=date(2026, 10, 18)) == ""


def test_speech_buffer_waits_for_punctuation_and_length() -> None:
	buffer = SpeechBuffer()

	assert buffer.feed("Hello there, ") is None  # punctuation, but too short
	chunk = buffer.feed("this is a **fairly** long sentence that ends.")
	assert chunk == "Hello there, this is a fairly long sentence that ends."
	assert buffer.feed(" Bye now!") is None
	assert buffer.flush() == "Bye now!"
	assert buffer.flush() is None


def test_speech_buffer_drops_tiny_leftovers() -> None:
	buffer = SpeechBuffer()
	buffer.feed("ok.")

	assert buffer.flush() is None
