from django.core.management.base import BaseCommand

from submissions.reminders import find_late_submissions, send_late_reminders


class Command(BaseCommand):
    help = "Email students whose submission phases are past due"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List late submissions without sending anything",
        )

    def handle(self, *args, **options):
        if options["dry_run"]:
            late = list(find_late_submissions())
            for submission in late:
                self.stdout.write(
                    f"{submission.student.get_username()}: {submission.get_phase_display()} "
                    f"due {submission.due_date:%Y-%m-%d}"
                )
            self.stdout.write(self.style.SUCCESS(f"{len(late)} late submission(s) found"))
            return

        summary = send_late_reminders()
        message = f"Sent {summary.sent}, failed {summary.failed}, total {summary.total}"
        if summary.failed:
            self.stdout.write(self.style.WARNING(message))
        else:
            self.stdout.write(self.style.SUCCESS(message))
