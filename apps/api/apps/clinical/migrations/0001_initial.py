# Generated migration for clinical app

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('patients', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Disease',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=1023)),
                ('icd', models.CharField(max_length=255, unique=True)),
            ],
            options={'db_table': 'disease', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='Medicine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('drug', models.CharField(max_length=1023)),
                ('company', models.CharField(max_length=1023)),
                ('brand', models.CharField(max_length=1023)),
                ('strength', models.CharField(max_length=255)),
                ('type', models.CharField(max_length=255)),
                ('category', models.CharField(choices=[('Capsule/Tablet', 'Capsule/Tablet'), ('External Application', 'External Application'), ('Injection', 'Injection'), ('Liquids/Syrups', 'Liquids/Syrups')], max_length=50)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
            ],
            options={'db_table': 'medicine', 'ordering': ['brand']},
        ),
        migrations.CreateModel(
            name='Case',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('token', models.PositiveIntegerField(unique=True)),
                ('weight', models.PositiveIntegerField(blank=True, null=True)),
                ('temperature', models.FloatField(blank=True, null=True)),
                ('heart_rate', models.PositiveIntegerField(blank=True, null=True)),
                ('respiratory_rate', models.PositiveIntegerField(blank=True, null=True)),
                ('blood_pressure_systolic', models.PositiveIntegerField(blank=True, null=True)),
                ('blood_pressure_diastolic', models.PositiveIntegerField(blank=True, null=True)),
                ('blood_sugar', models.PositiveIntegerField(blank=True, null=True)),
                ('spo2', models.PositiveIntegerField(blank=True, null=True)),
                ('consultation_notes', models.TextField(blank=True, default='')),
                ('diagnosis', models.JSONField(blank=True, default=list)),
                ('finalized_state', models.CharField(blank=True, choices=[('opd', 'OPD'), ('admitted', 'Admitted'), ('referred', 'Referred')], max_length=20, null=True)),
                ('associated_users', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='cases', to='patients.patient')),
            ],
            options={
                'db_table': 'case',
                'ordering': ['id'],
                'indexes': [
                    models.Index(fields=['patient'], name='idx_case_patient'),
                    models.Index(fields=['finalized_state'], name='idx_case_finalized'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Prescription',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('dosage', models.CharField(max_length=255)),
                ('frequency', models.CharField(max_length=255)),
                ('duration', models.CharField(max_length=255)),
                ('duration_unit', models.CharField(max_length=255)),
                ('category_data', models.JSONField()),
                ('comment', models.TextField(blank=True, default='')),
                ('case', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='prescriptions', to='clinical.case')),
                ('medicine', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='prescriptions', to='clinical.medicine')),
            ],
            options={'db_table': 'case_prescription', 'ordering': ['id']},
        ),
    ]
