from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('location', models.CharField(blank=True, help_text='Hotel, block and room, e.g. "Hotel Slovenska, Blok A, Soba 12"', max_length=255)),
                ('room_number', models.CharField(blank=True, max_length=20)),
                ('status', models.CharField(choices=[('new', 'New'), ('with_operator', 'With Operator'), ('with_sef', 'With Supervisor'), ('assigned_to_radnik', 'Assigned to Technician'), ('with_external', 'With External Servicer'), ('returned_to_operator', 'Returned to Operator'), ('returned_to_sef', 'Returned to Supervisor'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='new', max_length=25)),
                ('priority', models.CharField(choices=[('urgent', 'Urgent'), ('normal', 'Normal'), ('can_wait', 'Can Wait')], db_index=True, default='normal', max_length=10)),
                ('worker_report', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('is_recurring', models.BooleanField(db_index=True, default=False)),
                ('recurrence_pattern', models.CharField(default='once', help_text='once/daily/weekly/monthly/yearly or "<count>_<days|weeks|months|years>"', max_length=20)),
                ('recurrence_start_date', models.DateTimeField(blank=True, null=True)),
                ('next_occurrence', models.DateTimeField(blank=True, help_text='Display hint only, never used for scheduling decisions', null=True)),
                ('recurrence_week_days', models.JSONField(blank=True, default=list, help_text='Weekday numbers, 0 = Sunday ... 6 = Saturday')),
                ('recurrence_month_days', models.JSONField(blank=True, default=list, help_text='Days of month, 1-31 (clamped to the month length)')),
                ('recurrence_year_dates', models.JSONField(blank=True, default=list, help_text='List of {"month": m, "day": d}')),
                ('execution_hour', models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MaxValueValidator(23)])),
                ('execution_minute', models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MaxValueValidator(59)])),
                ('scheduled_for', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('scheduled_date', models.DateField(blank=True, editable=False, help_text='Local calendar date of scheduled_for (auto-set)', null=True)),
                ('scheduled_notification_sent', models.BooleanField(default=False, help_text='Morning notification for the scheduled day sent')),
                ('assignees', models.ManyToManyField(blank=True, help_text='Technicians responsible for the work', related_name='assigned_tasks', to=settings.AUTH_USER_MODEL)),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='cancelled_tasks', to=settings.AUTH_USER_MODEL)),
                ('completed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='completed_tasks', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(help_text='User who reported this task', on_delete=django.db.models.deletion.PROTECT, related_name='created_tasks', to=settings.AUTH_USER_MODEL)),
                ('parent_task', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='child_tasks', to='tasks.task')),
            ],
            options={
                'verbose_name': 'task',
                'verbose_name_plural': 'tasks',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='task',
            index=models.Index(fields=['status', 'created_by'], name='task_status_creator_idx'),
        ),
        migrations.AddIndex(
            model_name='task',
            index=models.Index(fields=['is_recurring', 'parent_task'], name='task_recurring_parent_idx'),
        ),
        migrations.AddIndex(
            model_name='task',
            index=models.Index(fields=['parent_task', 'status'], name='task_parent_status_idx'),
        ),
        migrations.AddIndex(
            model_name='task',
            index=models.Index(fields=['scheduled_for', 'status'], name='task_scheduled_status_idx'),
        ),
        migrations.AddConstraint(
            model_name='task',
            constraint=models.UniqueConstraint(
                condition=models.Q(parent_task__isnull=False) & ~models.Q(status__in=['completed', 'cancelled']),
                fields=('parent_task', 'scheduled_date'),
                name='unique_active_child_per_day',
            ),
        ),
    ]
