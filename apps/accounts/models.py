"""
Custom User model for the hotel maintenance tracker.

CRITICAL: AUTH_USER_MODEL points here and must be set before running
any migrations. Changing the User model after migrations is very complex.
"""

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    """
    Custom user manager where email is the unique identifier
    for authentication instead of username.
    """

    def create_user(self, email, password=None, **extra_fields):
        """Create and save a regular user with the given email and password."""
        if not email:
            raise ValueError('The Email field must be set')

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Create and save a SuperUser with the given email and password."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('role', User.Role.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Hotel staff member.

    Roles follow the complaint ("reklamacija") workflow:
    - Recepcioner/Menadzer: report problems
    - Operater: triages new tasks and dispatches them
    - Sef: technical supervisor, assigns technicians
    - Radnik: in-house technician doing the work
    - Serviser: external service company
    - Admin: full access, recurring task administration
    """

    class Role(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        RECEPCIONER = 'recepcioner', 'Receptionist'
        OPERATER = 'operater', 'Operator'
        SEF = 'sef', 'Supervisor'
        RADNIK = 'radnik', 'Technician'
        SERVISER = 'serviser', 'External Servicer'
        MENADZER = 'menadzer', 'Manager'

    class Department(models.TextChoices):
        RECEPCIJA = 'recepcija', 'Reception'
        RESTORAN = 'restoran', 'Restaurant'
        BAZEN = 'bazen', 'Pool'
        DOMACINSTVO = 'domacinstvo', 'Housekeeping'
        TEHNICKA = 'tehnicka', 'Technical'
        EKSTERNI = 'eksterni', 'External'

    # Remove username field, use email instead
    username = None
    email = models.EmailField(
        'email address',
        unique=True,
        error_messages={
            'unique': 'A user with that email already exists.',
        },
    )

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.RADNIK,
        db_index=True,
    )
    department = models.CharField(
        max_length=20,
        choices=Department.choices,
        blank=True,
    )
    phone = models.CharField(max_length=30, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    class Meta:
        verbose_name = 'user'
        verbose_name_plural = 'users'
        ordering = ['first_name', 'last_name']

    def __str__(self):
        return f"{self.get_full_name()} ({self.email})"

    def get_full_name(self):
        """Return the first_name plus the last_name, with a space in between."""
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email

    def get_short_name(self):
        return self.first_name or self.email.split('@')[0]

    # ==========================================================================
    # Role Methods
    # ==========================================================================

    def is_admin(self):
        """Check if user is an Admin."""
        return self.role == self.Role.ADMIN or self.is_superuser

    def is_supervisor(self):
        """Check if user is a technical supervisor (sef)."""
        return self.role == self.Role.SEF

    def is_technician(self):
        """Check if user does the field work (in-house or external)."""
        return self.role in [self.Role.RADNIK, self.Role.SERVISER]

    def can_manage_recurring_tasks(self):
        """Supervisors and admins create, edit and delete recurring templates."""
        return self.is_admin() or self.is_supervisor()
