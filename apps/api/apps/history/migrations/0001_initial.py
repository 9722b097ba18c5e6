# Generated migration for history app

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('clinical', '0001_initial'),
        ('patients', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='OtpRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('otp', models.PositiveIntegerField()),
                ('issued_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='otp_records', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='otp_records', to='patients.patient')),
            ],
            options={
                'db_table': 'otp_record',
                'constraints': [
                    models.UniqueConstraint(fields=('doctor', 'patient'), name='uniq_otp_doctor_patient'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OtpOverrideLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reason', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('case', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='otp_overrides', to='clinical.case')),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='otp_overrides', to=settings.AUTH_USER_MODEL)),
            ],
            options={'db_table': 'otp_override_log', 'ordering': ['-created_at', '-id']},
        ),
    ]
