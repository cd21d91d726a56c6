import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Quiz',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                (
                    'time_limit_minutes',
                    models.PositiveIntegerField(blank=True, help_text='Leave empty for an untimed quiz.', null=True),
                ),
                (
                    'attempts_allowed',
                    models.PositiveIntegerField(
                        blank=True,
                        help_text='Maximum completed attempts per learner. Leave empty for unlimited.',
                        null=True,
                    ),
                ),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                (
                    'owner',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='owned_quizzes',
                        to='accounts.instructor',
                    ),
                ),
            ],
            options={
                'verbose_name_plural': 'quizzes',
            },
        ),
        migrations.CreateModel(
            name='Question',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('question_text', models.TextField()),
                (
                    'question_type',
                    models.CharField(
                        choices=[
                            ('multiple_choice', 'Multiple choice'),
                            ('checkbox', 'Checkbox'),
                            ('multiple_answers', 'Multiple answers'),
                            ('true_false', 'True / false'),
                            ('essay', 'Essay'),
                            ('fill_in_blank', 'Fill in the blank'),
                        ],
                        max_length=32,
                    ),
                ),
                ('options', models.JSONField(blank=True, null=True)),
                ('points', models.FloatField(default=1)),
                ('order_index', models.IntegerField()),
                ('correct_answer', models.TextField(blank=True, null=True)),
                ('correct_answers', models.JSONField(blank=True, null=True)),
                ('explanation', models.TextField(blank=True)),
                (
                    'quiz',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='questions',
                        to='quizzes.quiz',
                    ),
                ),
            ],
            options={
                'ordering': ['order_index'],
            },
        ),
        migrations.CreateModel(
            name='QuizAttempt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('attempt_number', models.PositiveIntegerField()),
                ('started_at', models.DateTimeField()),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('answers', models.JSONField(blank=True, default=dict)),
                ('score', models.FloatField(blank=True, null=True)),
                ('max_score', models.FloatField(blank=True, null=True)),
                ('time_limit_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('timer_started_at', models.DateTimeField(blank=True, null=True)),
                ('is_timer_active', models.BooleanField(default=False)),
                ('time_remaining_seconds', models.IntegerField(blank=True, null=True)),
                ('time_taken_seconds', models.IntegerField(blank=True, null=True)),
                ('needs_manual_grading', models.BooleanField(default=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                (
                    'quiz',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='attempts',
                        to='quizzes.quiz',
                    ),
                ),
                (
                    'user',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='quiz_attempts',
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                'ordering': ['-started_at'],
            },
        ),
        migrations.CreateModel(
            name='Assignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('due_at', models.DateTimeField(blank=True, null=True)),
                (
                    'quiz',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='assignments',
                        to='quizzes.quiz',
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name='AssignmentSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                (
                    'status',
                    models.CharField(
                        choices=[('pending', 'Pending'), ('submitted', 'Submitted')],
                        default='pending',
                        max_length=16,
                    ),
                ),
                ('grade', models.FloatField(blank=True, null=True)),
                ('submitted_at', models.DateTimeField(blank=True, null=True)),
                (
                    'assignment',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='submissions',
                        to='quizzes.assignment',
                    ),
                ),
                (
                    'student',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='assignment_submissions',
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.AddConstraint(
            model_name='question',
            constraint=models.UniqueConstraint(fields=('quiz', 'order_index'), name='unique_quiz_question_order'),
        ),
        migrations.AddConstraint(
            model_name='quizattempt',
            constraint=models.UniqueConstraint(
                condition=models.Q(('completed_at__isnull', True)),
                fields=('quiz', 'user'),
                name='one_active_attempt_per_user',
            ),
        ),
        migrations.AddConstraint(
            model_name='quizattempt',
            constraint=models.UniqueConstraint(
                fields=('quiz', 'user', 'attempt_number'),
                name='unique_attempt_number_per_user',
            ),
        ),
        migrations.AddConstraint(
            model_name='assignmentsubmission',
            constraint=models.UniqueConstraint(fields=('assignment', 'student'), name='unique_assignment_submission'),
        ),
    ]
