from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('messaging', '0002_seed_pricing'),
    ]

    operations = [
        migrations.AddField(
            model_name='message',
            name='redacted_content',
            field=models.TextField(blank=True, default=''),
        ),
    ]
