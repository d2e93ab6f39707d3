import pytest

from subscribe_board.telegram.errors import TelegramApiError, TelegramErrorKind, classify_telegram_error


@pytest.mark.parametrize(
    "description, expected",
    [
        ("Bad Request: message is not modified: specified new message content is the same",
         TelegramErrorKind.NOT_MODIFIED),
        ("Bad Request: message caption is too long", TelegramErrorKind.TOO_LONG),
        ("Bad Request: MEDIA_CAPTION_TOO_LONG", TelegramErrorKind.TOO_LONG),
        ("Bad Request: can't parse entities: Unsupported start tag \"x\" at byte offset 3",
         TelegramErrorKind.PARSE_ENTITIES),
        ("Bad Request: unsupported HTML tag", TelegramErrorKind.PARSE_ENTITIES),
        ("Bad Request: chat not found", TelegramErrorKind.OTHER),
        ("", TelegramErrorKind.OTHER),
        (None, TelegramErrorKind.OTHER),
    ],
)
def test_classify(description, expected):
    assert classify_telegram_error(description) is expected

def test_api_error_carries_kind_and_method():
    exc = TelegramApiError("Bad Request: message text is too long", "editMessageText")

    assert exc.kind is TelegramErrorKind.TOO_LONG
    assert exc.method == "editMessageText"
    assert str(exc) == "Bad Request: message text is too long"
