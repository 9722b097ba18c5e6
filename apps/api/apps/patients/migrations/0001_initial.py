# Generated migration for patients app

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('type', models.CharField(choices=[('student', 'Student'), ('professor', 'Professor'), ('dependent', 'Dependent'), ('visitor', 'Visitor')], max_length=20)),
                ('birthdate', models.DateField()),
                ('sex', models.CharField(choices=[('male', 'Male'), ('female', 'Female')], max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'patient',
                'ordering': ['id'],
                'indexes': [models.Index(fields=['type'], name='idx_patient_type')],
            },
        ),
        migrations.CreateModel(
            name='Student',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('student_id', models.CharField(max_length=50, unique=True)),
                ('email', models.EmailField(max_length=255)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('patient', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='student', to='patients.patient')),
            ],
            options={'db_table': 'patient_student'},
        ),
        migrations.CreateModel(
            name='Professor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('psrn', models.CharField(max_length=50, unique=True)),
                ('email', models.EmailField(max_length=255)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('patient', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='professor', to='patients.patient')),
            ],
            options={'db_table': 'patient_professor'},
        ),
        migrations.CreateModel(
            name='Dependent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('psrn', models.CharField(db_index=True, max_length=50)),
                ('patient', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='dependent', to='patients.patient')),
            ],
            options={'db_table': 'patient_dependent'},
        ),
        migrations.CreateModel(
            name='Visitor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(max_length=255)),
                ('phone', models.CharField(max_length=20, unique=True)),
                ('patient', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='visitor', to='patients.patient')),
            ],
            options={'db_table': 'patient_visitor'},
        ),
        migrations.CreateModel(
            name='RegistrationToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('identifier_type', models.CharField(choices=[('psrn', 'PSRN'), ('student_id', 'Student ID'), ('phone', 'Phone')], max_length=20)),
                ('identifier', models.CharField(max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='registration_tokens', to='patients.patient')),
            ],
            options={'db_table': 'registration_queue', 'ordering': ['id']},
        ),
    ]
