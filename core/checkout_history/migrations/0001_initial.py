import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CheckedOutStayRecord",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("hotel_id", models.CharField(db_index=True, max_length=128)),
                ("stay_id", models.CharField(max_length=64)),
                ("room_number", models.CharField(max_length=32)),
                ("room_type", models.CharField(blank=True, default="", max_length=100)),
                ("guest_name", models.CharField(blank=True, default="", max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("CHECKED_OUT", "Checked Out"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        max_length=20,
                    ),
                ),
                ("check_in_date", models.DateField()),
                ("check_out_date", models.DateField()),
                ("archived_at", models.DateTimeField()),
                ("final_bill", models.JSONField(default=dict)),
                ("service_request_ids", models.JSONField(default=list)),
            ],
            options={
                "db_table": "stayledger_checkout_history",
                "ordering": ["archived_at", "id"],
            },
        ),
        migrations.AddConstraint(
            model_name="checkedoutstayrecord",
            constraint=models.UniqueConstraint(
                fields=("hotel_id", "stay_id"),
                name="uq_checkout_history_hotel_stay",
            ),
        ),
        migrations.AddIndex(
            model_name="checkedoutstayrecord",
            index=models.Index(
                fields=["hotel_id", "archived_at"],
                name="idx_checkout_hotel_archived",
            ),
        ),
    ]
