from famli.models.whatsapp import IncomingMessage, MessageType
from famli.services.message_classifier import classify_message


def _message(**kwargs) -> IncomingMessage:
    return IncomingMessage(from_number="whatsapp:+5511999999999", **kwargs)


class TestClassifyMessage:

    def test_plain_text(self):
        assert classify_message(_message(body="Oi")) == MessageType.TEXT

    def test_empty_message_is_text(self):
        assert classify_message(_message()) == MessageType.TEXT

    def test_media_by_mime_prefix(self):
        assert classify_message(_message(num_media=1, media_content_type="image/jpeg")) == MessageType.IMAGE
        assert classify_message(_message(num_media=1, media_content_type="audio/ogg")) == MessageType.AUDIO
        assert classify_message(_message(num_media=1, media_content_type="application/pdf")) == MessageType.DOCUMENT

    def test_media_wins_over_coordinates(self):
        message = _message(
            num_media=1,
            media_content_type="image/png",
            latitude="-23.55",
            longitude="-46.63",
        )
        assert classify_message(message) == MessageType.IMAGE

    def test_location_requires_both_coordinates(self):
        assert classify_message(_message(latitude="-23.55", longitude="-46.63")) == MessageType.LOCATION
        assert classify_message(_message(latitude="-23.55")) == MessageType.TEXT

    def test_unknown_mime_falls_through(self):
        video = _message(num_media=1, media_content_type="video/mp4", body="vídeo")
        assert classify_message(video) == MessageType.TEXT

        video_with_location = _message(
            num_media=1,
            media_content_type="video/mp4",
            latitude="1",
            longitude="2",
        )
        assert classify_message(video_with_location) == MessageType.LOCATION

    def test_mime_ignored_without_media(self):
        message = _message(num_media=0, media_content_type="image/jpeg", body="texto")
        assert classify_message(message) == MessageType.TEXT
