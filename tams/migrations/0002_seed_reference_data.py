from decimal import Decimal

from django.db import migrations


ASSET_TYPES = [
    ("SIG", "Signage", 10),
    ("GR", "Guardrail", 25),
    ("TS", "Traffic Signal", 15),
    ("SB", "Safety Barrier", 30),
]

COMPONENTS = {
    "Signage": [
        ("Foundation/Footing", "Cracking, undermining or exposure of the footing"),
        ("Holding Bolts & Base Plates", "Missing, loose or corroded bolts and plates"),
        ("Post/Vertical Member", "Bending, leaning, corrosion or impact damage"),
        ("Sign Face/Panel", "Fading, retroreflectivity loss, graffiti or panel damage"),
        ("Face Fasteners", "Missing or loose clamps and rivets"),
        ("Nearby Vegetation", "Vegetation obstructing sight lines to the sign"),
    ],
    "Guardrail": [
        ("W-Beam Rail Element", "Deformation, tears, corrosion or incorrect height"),
        ("Posts", "Leaning, rotted, missing or damaged posts"),
        ("Connections & Bolts", "Missing splice bolts, loose or sheared connections"),
        ("Anchoring/Foundation", "Loose anchors, scour or settlement"),
        ("End Treatments", "Damaged or incorrectly installed terminals"),
        ("Reflectorization", "Missing or dirty delineators and reflectors"),
    ],
    "Traffic Signal": [
        ("Signal Heads & Lenses", "Faded, broken or misaligned heads and lenses"),
        ("Mast Arm/Support Structure", "Corrosion, cracking or loose fixings"),
        ("Controller Cabinet", "Damage, water ingress or unsecured doors"),
        ("Detection System", "Faulty loops or detectors"),
        ("Electrical Wiring", "Exposed, damaged or unsafe wiring"),
        ("Power Supply", "Intermittent supply or missing backup"),
    ],
    "Safety Barrier": [
        ("Barrier Face/Surface", "Spalling, cracking or impact damage"),
        ("Joints & Connections", "Open, displaced or damaged joints"),
        ("Anchoring System", "Loose or corroded anchors"),
        ("Drainage Provisions", "Blocked or damaged drainage slots"),
        ("Reflective Elements", "Missing or dirty reflective markers"),
        ("Transitions & Terminals", "Damaged or unshielded transitions"),
    ],
}

DEFAULT_RATES = [
    ("Signage", "each", Decimal("50")),
    ("Signage", "m²", Decimal("100")),
    ("Signage", "m", Decimal("30")),
    ("Guardrail", "each", Decimal("200")),
    ("Guardrail", "m", Decimal("150")),
    ("Guardrail", "m²", Decimal("250")),
    ("Traffic Signal", "each", Decimal("500")),
    ("Traffic Signal", "m", Decimal("300")),
    ("Traffic Signal", "m²", Decimal("400")),
]


def seed_reference_data(apps, schema_editor):
    AssetType = apps.get_model("tams", "AssetType")
    ComponentTemplate = apps.get_model("tams", "ComponentTemplate")
    RemedialRate = apps.get_model("tams", "RemedialRate")

    asset_types = {}
    for code, name, useful_life in ASSET_TYPES:
        asset_type, _ = AssetType.objects.get_or_create(
            name=name,
            defaults={"code": code, "default_useful_life_years": useful_life},
        )
        asset_types[name] = asset_type

    for type_name, components in COMPONENTS.items():
        for order, (component_name, what_to_inspect) in enumerate(components, start=1):
            ComponentTemplate.objects.get_or_create(
                asset_type=asset_types[type_name],
                component_name=component_name,
                defaults={
                    "what_to_inspect": what_to_inspect,
                    "display_order": order,
                    "default_quantity": Decimal("1"),
                    "quantity_unit": "each",
                },
            )

    for type_name, unit, base_rate in DEFAULT_RATES:
        RemedialRate.objects.get_or_create(
            organisation=None,
            asset_type=asset_types[type_name],
            unit=unit,
            defaults={"base_rate": base_rate},
        )


def remove_reference_data(apps, schema_editor):
    AssetType = apps.get_model("tams", "AssetType")
    RemedialRate = apps.get_model("tams", "RemedialRate")
    names = [name for _, name, _ in ASSET_TYPES]
    RemedialRate.objects.filter(organisation__isnull=True, asset_type__name__in=names).delete()
    AssetType.objects.filter(name__in=names, assets__isnull=True).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("tams", "0001_initial"),
    ]

    operations = [migrations.RunPython(seed_reference_data, remove_reference_data)]
