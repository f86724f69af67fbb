from django.core.management.base import BaseCommand, CommandError

from tams import models
from tams.services import inspection_scores


class Command(BaseCommand):
    help = "Recompute component and asset condition scores for stored inspections."

    def add_arguments(self, parser):
        parser.add_argument("--year", type=int, help="Only inspections carried out in this year.")
        parser.add_argument("--asset-type", dest="asset_type", help="Only inspections of this asset type (by name).")

    def handle(self, *args, **options):
        year = options.get("year")
        asset_type = options.get("asset_type")

        if asset_type and not models.AssetType.objects.filter(name__iexact=asset_type).exists():
            raise CommandError(f"Unknown asset type: {asset_type}")

        try:
            processed, scored = inspection_scores.recompute_all_inspection_scores(year=year, asset_type=asset_type)
        except Exception as exc:  # pragma: no cover - execution-time errors
            raise CommandError(f"Error recomputing inspection scores: {exc}")

        self.stdout.write(
            self.style.SUCCESS(
                f"Recomputed scores for {processed} inspection(s); "
                f"{scored} component(s) scored."
            )
        )
