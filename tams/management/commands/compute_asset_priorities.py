from datetime import date

from django.core.management.base import BaseCommand, CommandError

from tams import models
from tams.services.portfolio import compute_asset_priorities


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise CommandError(f"Invalid date '{value}'; use YYYY-MM-DD.")


class Command(BaseCommand):
    help = "Compute ranked replacement priorities for active assets."

    def add_arguments(self, parser):
        parser.add_argument("--date", dest="as_of", help="Valuation date (YYYY-MM-DD); defaults to today.")
        parser.add_argument("--organisation", help="Organisation code to limit the ranking to.")

    def handle(self, *args, **options):
        as_of = _parse_date(options["as_of"]) if options.get("as_of") else date.today()

        organisation = None
        if options.get("organisation"):
            organisation = models.Organisation.objects.filter(code=options["organisation"]).first()
            if organisation is None:
                raise CommandError(f"Unknown organisation: {options['organisation']}")

        if not models.Inspection.objects.filter(ci_final__isnull=False).exists():
            self.stdout.write(
                self.style.WARNING(
                    "No scored inspections found. Recompute inspection scores first "
                    "to ensure condition indices are available."
                )
            )

        self.stdout.write(self.style.WARNING(f"Computing replacement priorities as of {as_of}..."))

        try:
            summary = compute_asset_priorities(as_of, organisation)
        except Exception as exc:  # pragma: no cover - execution-time errors
            raise CommandError(f"Error computing replacement priorities: {exc}")

        self.stdout.write(
            self.style.SUCCESS(f"{summary['processed']} asset(s) ranked; {summary['skipped']} skipped")
        )
        top_rows = summary.get("top", []) or []
        if top_rows:
            self.stdout.write("Top 10 replacement priorities:")
            for rank, row in top_rows:
                self.stdout.write(
                    f"  #{rank}: {row.asset} | Score={row.priority.priority_score} "
                    f"({row.priority.priority_category}) | CI={row.ci} | Age={row.age_years}y"
                )

        self.stdout.write(self.style.SUCCESS("Replacement priority computation complete."))
