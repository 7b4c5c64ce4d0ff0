from django.conf import settings

from blog.sanitizer import plain_text_length
from utils.errors import InvalidInput


def publish_problems(title, description):
    """Map of field -> messages explaining why content cannot be published yet."""
    problems = {}
    min_title = settings.PUBLISH_MIN_TITLE_LENGTH
    min_content = settings.PUBLISH_MIN_CONTENT_LENGTH

    if len((title or "").strip()) < min_title:
        problems["title"] = [f"Please provide a title (min {min_title} characters)."]
    if plain_text_length(description) < min_content:
        problems["description"] = [f"Content is too short to publish (min {min_content} characters)."]
    return problems


def is_publishable(title, description):
    return not publish_problems(title, description)


def ensure_publishable(title, description):
    problems = publish_problems(title, description)
    if problems:
        message = " ".join(messages[0] for messages in problems.values())
        raise InvalidInput(message, details=problems)


def has_meaningful_content(title="", description="", image=""):
    """True when there is anything worth saving: a title, visible text or an image."""
    return bool((title or "").strip() or plain_text_length(description) > 0 or (image or "").strip())
