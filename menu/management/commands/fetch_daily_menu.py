"""
Management command to fetch a day's school meals from NEIS and print them.
"""
import json
from dataclasses import asdict
from datetime import date, datetime

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from menu.formatting import format_meal_records
from neis_lib.exceptions import MealTransportError, NoMealDataError
from neis_lib.parser import neis_meal_retrieve


class Command(BaseCommand):
    help = 'Fetch the school meal menu for a date from the NEIS Open API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            type=str,
            help='Date to fetch (YYYY-MM-DD), defaults to today',
        )
        parser.add_argument(
            '--office-code',
            default=None,
            help='Education office code (ATPT_OFCDC_SC_CODE), defaults to NEIS_OFFICE_CODE',
        )
        parser.add_argument(
            '--school-code',
            default=None,
            help='School code (SD_SCHUL_CODE), defaults to NEIS_SCHOOL_CODE',
        )
        parser.add_argument(
            '--json',
            action='store_true',
            help='Print the parsed meal records as JSON',
        )

    def handle(self, *args, **options):
        # Parse date
        if options['date']:
            try:
                target_date = datetime.strptime(options['date'], '%Y-%m-%d').date()
            except ValueError:
                raise CommandError(f'Invalid date format: {options["date"]}. Use YYYY-MM-DD')
        else:
            target_date = date.today()

        try:
            meals = neis_meal_retrieve(
                target_date,
                office_code=options['office_code'] or settings.NEIS_OFFICE_CODE,
                school_code=options['school_code'] or settings.NEIS_SCHOOL_CODE,
                api_key=settings.NEIS_API_KEY or None,
                timeout=settings.NEIS_REQUEST_TIMEOUT,
                fallback_proxy=settings.NEIS_FALLBACK_PROXY or None,
            )
        except NoMealDataError:
            self.stdout.write(self.style.WARNING(f'No meal data for {target_date}'))
            return
        except MealTransportError as e:
            raise CommandError(f'Error fetching meals: {e}')

        if options['json']:
            payload = [asdict(meal) for meal in meals]
            self.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False))
            return

        self.stdout.write(format_meal_records(meals, [], target_date))
        self.stdout.write(self.style.SUCCESS(f'\n✅ {len(meals)} meal(s) fetched'))
