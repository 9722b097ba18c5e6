# Generated migration for lab app

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clinical', '0001_initial'),
        ('files', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='LabTest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('category', models.CharField(blank=True, max_length=255)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={'db_table': 'lab_test', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='LabReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('Requested', 'Requested'), ('Sample Collected', 'Sample Collected'), ('Complete', 'Complete')], default='Requested', max_length=20)),
                ('data', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('case', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lab_reports', to='clinical.case')),
                ('test', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reports', to='lab.labtest')),
            ],
            options={
                'db_table': 'lab_report',
                'ordering': ['id'],
                'indexes': [
                    models.Index(fields=['case'], name='idx_lab_report_case'),
                    models.Index(fields=['status'], name='idx_lab_report_status'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('case', 'test'), name='uniq_lab_report_case_test'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReportFile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('file', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='report_links', to='files.storedfile')),
                ('report', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='file_links', to='lab.labreport')),
            ],
            options={
                'db_table': 'lab_report_file',
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('report', 'file'), name='uniq_lab_report_file'),
                ],
            },
        ),
    ]
