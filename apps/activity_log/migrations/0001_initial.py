from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tasks', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TaskActivity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('task_title', models.CharField(blank=True, max_length=255)),
                ('user_name', models.CharField(default='System', max_length=255)),
                ('user_role', models.CharField(default='system', max_length=20)),
                ('action_type', models.CharField(choices=[('task_created', 'Task Created'), ('status_changed', 'Status Changed'), ('assigned', 'Assigned'), ('task_deleted', 'Task Deleted'), ('detached', 'Detached from Template')], db_index=True, max_length=20)),
                ('description', models.TextField(blank=True, help_text='Human-readable description of the change')),
                ('status_from', models.CharField(blank=True, max_length=25, null=True)),
                ('status_to', models.CharField(blank=True, max_length=25, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('task', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activities', to='tasks.task')),
                ('user', models.ForeignKey(blank=True, help_text='User who performed the action (empty for the scheduler)', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='task_activities', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'task activity',
                'verbose_name_plural': 'task activities',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='taskactivity',
            index=models.Index(fields=['task', '-created_at'], name='activity_task_created_idx'),
        ),
        migrations.AddIndex(
            model_name='taskactivity',
            index=models.Index(fields=['action_type', '-created_at'], name='activity_action_created_idx'),
        ),
    ]
