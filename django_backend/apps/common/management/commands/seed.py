from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from apps.projects.models import MemberRole, Project
from apps.tasks.choices import RecurrenceFrequency, TaskPriority, TaskStatus
from apps.tasks.models import Task
from apps.users.models import UserRole
import random
import uuid
from datetime import timedelta

User = get_user_model()

DIVISIONS = {
    'engineering': ['engineering.platform', 'engineering.mobile'],
    'finance': ['finance.payroll', 'finance.audit'],
}

TASK_TITLES = [
    'Prepare quarterly report', 'Review pull requests', 'Update onboarding guide',
    'Plan sprint retrospective', 'Fix login redirect', 'Audit expense claims',
    'Migrate staging database', 'Write release notes', 'Renew SSL certificates',
    'Clean up stale branches', 'Interview candidates', 'Reconcile invoices',
]


class Command(BaseCommand):
    help = 'Seed the database with sample users, projects and tasks'

    def add_arguments(self, parser):
        parser.add_argument(
            '--staff',
            type=int,
            default=6,
            help='Number of staff users to create per division'
        )
        parser.add_argument(
            '--tasks',
            type=int,
            default=40,
            help='Number of tasks to create'
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Starting database seeding...')

        users = self.create_users(options['staff'])
        projects = self.create_projects(users)
        tasks = self.create_tasks(users, projects, options['tasks'])
        series = self.create_recurring_series(users, projects)

        self.stdout.write(
            self.style.SUCCESS(
                f'\nSeed data created successfully!\n'
                f'Users: {len(users)}\n'
                f'Projects: {len(projects)}\n'
                f'Tasks: {len(tasks)}\n'
                f'Recurring series: {len(series)}\n\n'
                f'Admin user: admin / admin123\n'
                f'Other users: [username] / password123\n'
            )
        )

    def _user(self, username, password, **fields):
        user, created = User.objects.get_or_create(username=username, defaults=fields)
        if created:
            user.set_password(password)
            user.save()
        return user

    def create_users(self, staff_per_division):
        self.stdout.write('Creating users...')

        users = [self._user(
            'admin', 'admin123',
            email='admin@example.com', role=UserRole.ADMIN,
            is_staff=True, is_superuser=True, hierarchy=1,
        )]
        users.append(self._user(
            'hr', 'password123',
            email='hr@example.com', role=UserRole.HR, department='finance', hierarchy=2,
        ))

        for division, departments in DIVISIONS.items():
            users.append(self._user(
                f'{division}_lead', 'password123',
                email=f'{division}_lead@example.com', role=UserRole.MANAGER,
                division=division, department=division, hierarchy=3,
            ))
            for i in range(staff_per_division):
                users.append(self._user(
                    f'{division}_{i + 1}', 'password123',
                    email=f'{division}_{i + 1}@example.com', role=UserRole.STAFF,
                    division=division, department=random.choice(departments),
                    hierarchy=random.choice([1, 2]),
                ))
        return users

    def create_projects(self, users):
        self.stdout.write('Creating projects...')

        projects = []
        for creator in users:
            if creator.role != UserRole.MANAGER:
                continue
            for name in ('Roadmap', 'Operations'):
                project = Project.objects.create(
                    name=f'{creator.division.title()} {name}',
                    description=f'{name} work of the {creator.division} division',
                    created_by=creator,
                )
                project.add_member(creator, MemberRole.CREATOR)
                for member in users:
                    if member.division == creator.division and member.role == UserRole.STAFF:
                        project.add_member(member)
                projects.append(project)
        return projects

    def create_tasks(self, users, projects, count):
        self.stdout.write('Creating tasks...')

        today = timezone.localdate()
        tasks = []
        for _ in range(count):
            project = random.choice(projects + [None])
            pool = [m for m in project.members.all()] if project else users
            assignees = random.sample(pool, k=min(len(pool), random.randint(1, 3)))
            tasks.append(Task.objects.create(
                title=random.choice(TASK_TITLES),
                description='Seeded task',
                priority=random.choice(TaskPriority.values),
                status=random.choice([TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED]),
                deadline=today + timedelta(days=random.randint(-5, 20)),
                project=project,
                created_by=assignees[0],
                assigned_to=[u.id for u in assignees],
                tags=random.sample(['backend', 'ops', 'docs', 'urgent-fix'], k=random.randint(0, 2)),
            ))
        return tasks

    def create_recurring_series(self, users, projects):
        self.stdout.write('Creating recurring tasks...')

        today = timezone.localdate()
        series = []
        for project, freq in zip(projects, RecurrenceFrequency.values):
            owner = project.created_by
            parent = Task.objects.create(
                title=f'{freq.title()} check-in',
                project=project,
                created_by=owner,
                assigned_to=[owner.id],
                deadline=today + timedelta(days=1),
                recurrence_freq=freq,
                recurrence_interval=1,
                recurrence_series_id=uuid.uuid4().hex,
            )
            Task.objects.create(
                title='Collect status updates',
                project=project,
                created_by=owner,
                assigned_to=[owner.id],
                parent=parent,
                deadline=parent.deadline,
            )
            series.append(parent)
        return series
