from echoserver.scanner import TOO_LONG, LineScanner


def test_needs_more_data_without_newline():
    scanner = LineScanner()
    scanner.feed(b"partial")
    assert scanner.next_line() is None
    scanner.feed(b" line\nnext")
    assert scanner.next_line() == b"partial line"
    assert scanner.next_line() is None
    assert scanner.buffered == len(b"next")


def test_multiple_lines_in_one_chunk_come_out_in_order():
    scanner = LineScanner()
    scanner.feed(b"one\ntwo\r\n\nthree\n")
    assert scanner.next_line() == b"one"
    assert scanner.next_line() == b"two\r"
    assert scanner.next_line() == b""
    assert scanner.next_line() == b"three"
    assert scanner.next_line() is None


def test_line_at_limit_is_accepted():
    scanner = LineScanner(max_size=8)
    scanner.feed(b"x" * 8 + b"\n")
    assert scanner.next_line() == b"x" * 8


def test_carriage_return_does_not_count_towards_limit():
    scanner = LineScanner(max_size=8)
    scanner.feed(b"x" * 8 + b"\r")
    assert scanner.next_line() is None
    scanner.feed(b"\n")
    assert scanner.next_line() == b"x" * 8 + b"\r"


def test_overlong_complete_line_is_rejected():
    scanner = LineScanner(max_size=8)
    scanner.feed(b"x" * 9 + b"\nok\n")
    assert scanner.next_line() is TOO_LONG
    assert scanner.next_line() == b"ok"


def test_overlong_partial_line_is_reported_once_and_discarded():
    scanner = LineScanner(max_size=8)
    scanner.feed(b"y" * 20)
    assert scanner.next_line() is TOO_LONG
    assert scanner.buffered == 0

    scanner.feed(b"y" * 20)
    assert scanner.next_line() is None
    assert scanner.buffered == 0

    scanner.feed(b"yyy\nafter\n")
    assert scanner.next_line() == b"after"


def test_eof_flag():
    scanner = LineScanner()
    assert scanner.eof is False
    scanner.feed_eof()
    assert scanner.eof is True


def test_unterminated_last_line_is_returned_at_eof():
    scanner = LineScanner()
    scanner.feed(b"first\nhello")
    assert scanner.next_line() == b"first"
    assert scanner.next_line() is None

    scanner.feed_eof()
    assert scanner.next_line() == b"hello"
    assert scanner.buffered == 0
    assert scanner.next_line() is None


def test_unterminated_overlong_tail_at_eof_is_too_long():
    scanner = LineScanner(max_size=8)
    scanner.feed_eof()
    scanner.feed(b"z" * 9)
    assert scanner.next_line() is TOO_LONG
    assert scanner.next_line() is None


def test_eof_with_empty_buffer_yields_nothing():
    scanner = LineScanner()
    scanner.feed(b"done\n")
    scanner.feed_eof()
    assert scanner.next_line() == b"done"
    assert scanner.next_line() is None
