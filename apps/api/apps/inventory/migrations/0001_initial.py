# Generated migration for inventory app

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='InventoryMedicine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, unique=True)),
                ('critical_quantity', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={'db_table': 'inventory_medicine', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='Batch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_number', models.CharField(max_length=255)),
                ('expiry_date', models.DateField()),
                ('quantity', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('medicine', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='batches', to='inventory.inventorymedicine')),
            ],
            options={
                'db_table': 'inventory_batch',
                'ordering': ['expiry_date', 'batch_number'],
                'indexes': [
                    models.Index(fields=['medicine', 'expiry_date'], name='idx_batch_medicine_expiry'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('medicine', 'batch_number'), name='uniq_batch_per_medicine'),
                ],
            },
        ),
    ]
