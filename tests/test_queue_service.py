"""Tests for queue file handling."""

from fashion.services.queue_service import finalize_queue, parse_queue, read_queue


class TestQueue:

    def test_parse_queue(self):
        text = "# Sale picks\n\nhttps://a.example/1\n  https://b.example/2  \nnot-a-url\n#https://c.example/3\n"
        assert parse_queue(text) == ["https://a.example/1", "https://b.example/2"]

    def test_read_missing_queue(self, tmp_path):
        assert read_queue(tmp_path / "queue.txt") == []

    def test_finalize_queue(self, tmp_path):
        queue = tmp_path / "queue.txt"
        done = tmp_path / "queue-done.txt"
        queue.write_text("# Sale picks\nhttps://a.example/1\nhttps://b.example/2\n", encoding="utf-8")

        finalize_queue(queue, done, processed=["https://a.example/1"], failed=["https://b.example/2"])

        assert queue.read_text(encoding="utf-8") == "# Sale picks\nhttps://b.example/2\n"
        done_text = done.read_text(encoding="utf-8")
        assert "# Processed " in done_text
        assert done_text.endswith("https://a.example/1\n")

    def test_finalize_appends_to_done_file(self, tmp_path):
        queue = tmp_path / "queue.txt"
        done = tmp_path / "queue-done.txt"
        done.write_text("https://old.example/0\n", encoding="utf-8")

        finalize_queue(queue, done, processed=["https://a.example/1"], failed=[])

        assert done.read_text(encoding="utf-8").startswith("https://old.example/0\n")
        assert read_queue(queue) == []
