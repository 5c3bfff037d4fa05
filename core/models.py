"""
Core models shared by every app.

Models:
    - NumberSequence: per prefix, per day counter backing invoice and
      receipt numbers
"""
from django.db import models


class NumberSequence(models.Model):
    """
    Last sequence value issued for a document prefix on a given day.

    Rows are incremented under ``select_for_update`` so two concurrent
    writers never receive the same number.
    """
    prefix = models.CharField(max_length=10, help_text="Document prefix, e.g. INV or PAY")
    day = models.DateField(help_text="Business day the sequence belongs to")
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = 'Number Sequence'
        verbose_name_plural = 'Number Sequences'
        constraints = [
            models.UniqueConstraint(
                fields=['prefix', 'day'],
                name='unique_number_sequence_per_day'
            )
        ]

    def __str__(self):
        return f"{self.prefix} {self.day:%Y%m%d}: {self.last_value}"
