"""
Management command to recompute is_subscribed/subscription_plan for every
profile from its Subscription rows.
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = 'Recompute subscription flags on all profiles from their subscriptions'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report profiles that would change without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        User = get_user_model()

        changed = 0
        for user in User.objects.all().iterator():
            if user.refresh_subscription_state(save=not dry_run):
                changed += 1
                self.stdout.write(f'  {user.email}: subscribed={user.is_subscribed} plan={user.subscription_plan}')

        verb = 'would change' if dry_run else 'updated'
        self.stdout.write(self.style.SUCCESS(f'{changed} profile(s) {verb}.'))
