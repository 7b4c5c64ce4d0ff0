from django.core.management.base import BaseCommand, CommandError

from accounts.permissions import ROLE_ADMIN, AuthContext
from blog.services import promote_user_to_author
from utils.errors import ContentError


class Command(BaseCommand):
    help = "Give an existing user the author role and an author profile"

    def add_arguments(self, parser):
        parser.add_argument("--email", type=str, required=True, help="Email address of the user to promote")
        parser.add_argument("--name", type=str, default="", help="Public author name")
        parser.add_argument("--bio", type=str, default="")
        parser.add_argument("--slug", type=str, default="", help="Preferred slug (made unique if taken)")

    def handle(self, *args, **options):
        # Promotions from the command line are audited without an actor
        context = AuthContext(user_id=None, role=ROLE_ADMIN, name="manage.py")

        try:
            author, created = promote_user_to_author(
                context,
                email=options["email"],
                name=options["name"],
                bio=options["bio"],
                slug=options["slug"],
            )
        except ContentError as e:
            raise CommandError(f"Error promoting user: {e.message}") from e

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created author '{author.name}' ({author.slug})"))
        else:
            self.stdout.write(self.style.WARNING(f"User is already author '{author.name}' ({author.slug})"))
