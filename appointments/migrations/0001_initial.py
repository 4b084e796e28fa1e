import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("clinics", "0001_initial"),
        ("professionals", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Appointment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_name", models.CharField(max_length=255)),
                ("client_email", models.EmailField(max_length=254)),
                ("client_phone", models.CharField(max_length=20)),
                ("date", models.DateField()),
                ("time", models.CharField(help_text='Start slot label, "HH:MM".', max_length=5)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("CONFIRMED", "Confirmed"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=20)),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("total_duration", models.PositiveIntegerField(help_text="Sum of service durations in minutes.")),
                ("payment_status", models.CharField(choices=[("PENDING", "Pending"), ("PAID", "Paid"), ("OVERDUE", "Overdue")], default="PENDING", max_length=20)),
                ("payment_method", models.CharField(blank=True, choices=[("CASH", "Cash"), ("PIX", "Pix"), ("CREDIT_CARD", "Credit card"), ("DEBIT_CARD", "Debit card"), ("BANK_TRANSFER", "Bank transfer")], default="", max_length=20)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("clinic", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="appointments", to="clinics.clinic")),
                ("professional", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="appointments", to="professionals.professional")),
            ],
            options={
                "verbose_name": "Appointment",
                "verbose_name_plural": "Appointments",
                "ordering": ["-date", "-time"],
            },
        ),
        migrations.CreateModel(
            name="AppointmentService",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("appointment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="service_lines", to="appointments.appointment")),
                ("service", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="appointment_lines", to="catalog.service")),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="AppointmentProduct",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("appointment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="product_lines", to="appointments.appointment")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="appointment_lines", to="catalog.product")),
            ],
        ),
        migrations.AddField(
            model_name="appointment",
            name="services",
            field=models.ManyToManyField(related_name="appointments", through="appointments.AppointmentService", to="catalog.service"),
        ),
        migrations.AddIndex(
            model_name="appointment",
            index=models.Index(fields=["clinic", "date"], name="appointment_clinic_date_idx"),
        ),
        migrations.AddConstraint(
            model_name="appointmentservice",
            constraint=models.UniqueConstraint(fields=("appointment", "service"), name="unique_service_per_appointment"),
        ),
        migrations.AddConstraint(
            model_name="appointmentproduct",
            constraint=models.UniqueConstraint(fields=("appointment", "product"), name="unique_product_per_appointment"),
        ),
    ]
