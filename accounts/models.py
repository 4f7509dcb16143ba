from decimal import Decimal

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.conf import settings


class CustomUserManager(BaseUserManager):
    """Manager for custom User model with email authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', User.ROLE_ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Profile record. Email is the login identifier.

    ``is_subscribed`` and ``subscription_plan`` are a cache of the user's
    Subscription rows; refresh them with ``refresh_subscription_state()``.
    ``points`` and ``commission_earned`` only move for employees and only
    ever go up.
    """

    ROLE_USER = 'user'
    ROLE_EMPLOYEE = 'employee'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_USER, 'User'),
        (ROLE_EMPLOYEE, 'Employee'),
        (ROLE_ADMIN, 'Admin'),
    ]

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_USER)

    # Subscription state (denormalized from billing.Subscription)
    is_subscribed = models.BooleanField(default=False)
    subscription_plan = models.CharField(max_length=30, null=True, blank=True)

    # Referral stats (employees only)
    points = models.PositiveIntegerField(default=0)
    commission_earned = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = 'user'
        verbose_name_plural = 'users'
        ordering = ['-created_at']

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.name or self.email

    def get_short_name(self):
        if self.name:
            return self.name.split()[0]
        return self.email.split('@')[0]

    def is_employee(self):
        return self.role == self.ROLE_EMPLOYEE

    def is_admin(self):
        """Admins are role=admin profiles or Django staff."""
        return self.role == self.ROLE_ADMIN or self.is_staff or self.is_superuser

    # Subscription methods

    def get_active_subscriptions(self):
        from billing.models import Subscription
        return Subscription.objects.filter(
            user=self, status=Subscription.STATUS_ACTIVE
        ).order_by('-created_at', '-id')

    def has_active_subscription(self):
        """Check if user has at least one active subscription."""
        return self.get_active_subscriptions().exists()

    def refresh_subscription_state(self, save=True):
        """
        Recompute is_subscribed/subscription_plan from Subscription rows.

        The most recent active subscription decides the plan. Returns True if
        either field changed.
        """
        latest = self.get_active_subscriptions().first()
        is_subscribed = latest is not None
        plan = latest.plan if latest else None

        changed = (is_subscribed, plan) != (self.is_subscribed, self.subscription_plan)
        self.is_subscribed = is_subscribed
        self.subscription_plan = plan
        if save and changed:
            self.save(update_fields=['is_subscribed', 'subscription_plan', 'updated_at'])
        return changed

    def get_coupon(self):
        """Get the employee's referral coupon or None."""
        return self.coupons.order_by('created_at').first()


class EmployeeMeta(models.Model):
    """Per-employee referral record, mirrors the profile's referral counters."""

    profile = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='employee_meta'
    )
    coupon_code = models.CharField(max_length=20)
    points = models.PositiveIntegerField(default=0)
    commission_earned = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Employee Meta'
        verbose_name_plural = 'Employee Meta'

    def __str__(self):
        return f"{self.profile.email} ({self.coupon_code})"


class Coupon(models.Model):
    """Referral discount code owned by one employee."""

    code = models.CharField(max_length=20, unique=True, help_text='Unique coupon code (e.g., SAVE20JANEDO)')
    employee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='coupons'
    )
    percent_off = models.PositiveSmallIntegerField(
        default=20,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(percent_off__gte=0) & models.Q(percent_off__lte=100),
                name='coupon_percent_off_range',
            ),
        ]

    def __str__(self):
        return f"{self.code} ({self.employee.email})"

    def get_times_used(self):
        return self.usages.count()

    def get_total_revenue(self):
        """Total revenue brought in through this coupon."""
        return self.usages.aggregate(
            total=models.Sum('revenue')
        )['total'] or Decimal('0.00')
