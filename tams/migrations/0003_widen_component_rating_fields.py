from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("tams", "0002_seed_reference_data"),
    ]

    operations = [
        migrations.AlterField(
            model_name="inspectioncomponentscore",
            name="degree",
            field=models.CharField(
                blank=True,
                choices=[
                    ("0", "0 - No defect"),
                    ("1", "1 - Minor"),
                    ("2", "2 - Moderate"),
                    ("3", "3 - Severe"),
                    ("X", "X - Not present / record only"),
                    ("U", "U - Unable to inspect"),
                ],
                max_length=5,
            ),
        ),
        migrations.AlterField(
            model_name="inspectioncomponentscore",
            name="extent",
            field=models.CharField(
                blank=True,
                choices=[
                    ("1", "1 - Less than 10%"),
                    ("2", "2 - 10 to 30%"),
                    ("3", "3 - 30 to 60%"),
                    ("4", "4 - More than 60%"),
                    ("U", "U - Unable to inspect"),
                ],
                max_length=5,
            ),
        ),
        migrations.AlterField(
            model_name="inspectioncomponentscore",
            name="relevancy",
            field=models.CharField(
                blank=True,
                choices=[
                    ("1", "1 - Low"),
                    ("2", "2 - Medium"),
                    ("3", "3 - High"),
                    ("4", "4 - Critical"),
                    ("U", "U - Unable to inspect"),
                ],
                max_length=5,
            ),
        ),
    ]
