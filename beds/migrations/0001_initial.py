import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(choices=[('admin', 'Administrator'), ('bed_manager', 'Bed Manager'), ('ward_staff', 'Ward Staff'), ('er_staff', 'ER Staff')], default='ward_staff', max_length=20)),
                ('ward', models.CharField(blank=True, default='', max_length=64)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('patient_id', models.CharField(max_length=20, unique=True)),
                ('name', models.CharField(max_length=255)),
                ('age', models.PositiveIntegerField(blank=True, null=True)),
                ('gender', models.CharField(blank=True, choices=[('Male', 'Male'), ('Female', 'Female'), ('Other', 'Other')], max_length=10)),
                ('contact_number', models.CharField(blank=True, max_length=32)),
                ('department', models.CharField(max_length=64)),
                ('reason_for_admission', models.TextField(blank=True)),
                ('estimated_stay', models.PositiveIntegerField(default=24, help_text='Expected stay in hours')),
                ('admission_date', models.DateTimeField(auto_now_add=True)),
                ('actual_discharge', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('admitted', 'Admitted'), ('critical', 'Critical'), ('stable', 'Stable'), ('recovering', 'Recovering'), ('discharged', 'Discharged')], db_index=True, default='admitted', max_length=20)),
                ('transfer_history', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='Bed',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bed_number', models.CharField(max_length=32, unique=True)),
                ('ward', models.CharField(db_index=True, max_length=64)),
                ('status', models.CharField(choices=[('available', 'Available'), ('occupied', 'Occupied'), ('cleaning', 'Cleaning'), ('reserved', 'Reserved'), ('maintenance', 'Maintenance')], db_index=True, default='available', max_length=20)),
                ('equipment_type', models.CharField(choices=[('Standard', 'Standard'), ('Ventilator', 'Ventilator'), ('ICU Monitor', 'ICU Monitor'), ('Cardiac Monitor', 'Cardiac Monitor'), ('Dialysis', 'Dialysis'), ('VAD', 'VAD')], default='Standard', max_length=32)),
                ('floor', models.IntegerField(default=1)),
                ('section', models.CharField(blank=True, default='', max_length=32)),
                ('room_number', models.CharField(blank=True, default='', max_length=32)),
                ('notes', models.TextField(blank=True, default='')),
                ('last_cleaned', models.DateTimeField(blank=True, null=True)),
                ('ever_occupied', models.BooleanField(default=False)),
                ('last_updated', models.DateTimeField(auto_now=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('patient', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='beds.patient')),
            ],
            options={
                'indexes': [models.Index(fields=['ward', 'status'], name='beds_bed_ward_e0c2f1_idx')],
            },
        ),
        migrations.AddField(
            model_name='patient',
            name='bed',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='beds.bed'),
        ),
        migrations.CreateModel(
            name='BedRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('request_id', models.CharField(max_length=20, unique=True)),
                ('created_by_name', models.CharField(blank=True, default='', max_length=255)),
                ('patient_name', models.CharField(max_length=255)),
                ('patient_age', models.PositiveIntegerField(blank=True, null=True)),
                ('patient_gender', models.CharField(blank=True, choices=[('Male', 'Male'), ('Female', 'Female'), ('Other', 'Other')], default='', max_length=10)),
                ('contact_number', models.CharField(blank=True, default='', max_length=32)),
                ('triage_level', models.CharField(blank=True, choices=[('Critical', 'Critical'), ('Urgent', 'Urgent'), ('Semi-Urgent', 'Semi-Urgent'), ('Non-Urgent', 'Non-Urgent')], default='', max_length=20)),
                ('required_equipment', models.CharField(choices=[('Standard', 'Standard'), ('Ventilator', 'Ventilator'), ('ICU Monitor', 'ICU Monitor'), ('Cardiac Monitor', 'Cardiac Monitor'), ('Dialysis', 'Dialysis'), ('VAD', 'VAD')], default='Standard', max_length=32)),
                ('reason_for_admission', models.TextField(blank=True, default='')),
                ('estimated_stay', models.PositiveIntegerField(blank=True, null=True)),
                ('preferred_ward', models.CharField(blank=True, default='', max_length=64)),
                ('eta', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('denied', 'Denied'), ('fulfilled', 'Fulfilled'), ('cancelled', 'Cancelled'), ('expired', 'Expired')], db_index=True, default='pending', max_length=20)),
                ('priority', models.PositiveSmallIntegerField(db_index=True, default=2)),
                ('notes', models.TextField(blank=True, default='')),
                ('assigned_bed_number', models.CharField(blank=True, default='', max_length=32)),
                ('assigned_ward', models.CharField(blank=True, default='', max_length=64)),
                ('reservation_expires_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('denial_reason', models.TextField(blank=True, default='')),
                ('fulfilled_at', models.DateTimeField(blank=True, null=True)),
                ('expired_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancel_reason', models.TextField(blank=True, default='')),
                ('is_deleted', models.BooleanField(db_index=True, default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_bed', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='requests', to='beds.bed')),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bed_requests', to=settings.AUTH_USER_MODEL)),
                ('deleted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bed_requests', to='beds.patient')),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_bed_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='beds_bedreq_status_3a1f0c_idx'),
                    models.Index(fields=['status', 'reservation_expires_at'], name='beds_bedreq_status_8d2b47_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='WardTransfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('current_ward', models.CharField(max_length=64)),
                ('target_ward', models.CharField(db_index=True, max_length=64)),
                ('reason', models.TextField(blank=True, default='')),
                ('notes', models.TextField(blank=True, default='')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('denied', 'Denied')], db_index=True, default='pending', max_length=20)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('deny_reason', models.TextField(blank=True, default='')),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('bed', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outgoing_transfers', to='beds.bed')),
                ('new_bed', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='incoming_transfers', to='beds.bed')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transfers', to='beds.patient')),
                ('requested_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='requested_transfers', to=settings.AUTH_USER_MODEL)),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_transfers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['patient', 'status'], name='beds_wardtr_patient_5c9e21_idx'),
                    models.Index(fields=['created_at'], name='beds_wardtr_created_7b40d3_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CleaningStaff',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('staff_id', models.CharField(max_length=32, unique=True)),
                ('name', models.CharField(max_length=255)),
                ('status', models.CharField(choices=[('available', 'Available'), ('busy', 'Busy')], default='available', max_length=10)),
                ('active_jobs_count', models.PositiveIntegerField(default=0)),
                ('total_jobs_completed', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='CleaningJob',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bed_number', models.CharField(max_length=32)),
                ('ward', models.CharField(max_length=64)),
                ('floor', models.IntegerField(default=1)),
                ('section', models.CharField(blank=True, default='', max_length=32)),
                ('room_number', models.CharField(blank=True, default='', max_length=32)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('active', 'Active'), ('completed', 'Completed')], default='pending', max_length=20)),
                ('assigned_to_name', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('assigned_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='jobs', to='beds.cleaningstaff')),
                ('bed', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='cleaning_jobs', to='beds.bed')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='beds_cleani_status_1e6a90_idx'),
                    models.Index(fields=['floor', 'status'], name='beds_cleani_floor_4b7c12_idx'),
                    models.Index(fields=['ward', 'status'], name='beds_cleani_ward_9f3d58_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Alert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('severity', models.CharField(choices=[('critical', 'critical'), ('warning', 'warning'), ('info', 'info'), ('success', 'success'), ('emergency', 'emergency')], max_length=16)),
                ('message', models.TextField()),
                ('ward', models.CharField(blank=True, default='', max_length=64)),
                ('priority', models.PositiveSmallIntegerField(default=1)),
                ('acknowledged', models.BooleanField(db_index=True, default=False)),
                ('acknowledged_by', models.CharField(blank=True, default='', max_length=255)),
                ('acknowledged_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('bed', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='alerts', to='beds.bed')),
            ],
            options={
                'indexes': [models.Index(fields=['priority', 'created_at'], name='beds_alert_priorit_2c8e7a_idx')],
            },
        ),
        migrations.CreateModel(
            name='Sequence',
            fields=[
                ('name', models.CharField(max_length=32, primary_key=True, serialize=False)),
                ('value', models.PositiveBigIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name='SystemSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('singleton', models.CharField(default='settings', max_length=16, unique=True)),
                ('warning_threshold', models.PositiveSmallIntegerField(default=80)),
                ('critical_threshold', models.PositiveSmallIntegerField(default=90)),
                ('reservation_ttl_hours', models.PositiveSmallIntegerField(default=2)),
                ('auto_expire_reservations', models.BooleanField(default=True)),
                ('default_period', models.CharField(default='24h', max_length=8)),
                ('auto_refresh_interval', models.PositiveIntegerField(default=60)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=64)),
                ('object_type', models.CharField(blank=True, max_length=64, null=True)),
                ('object_id', models.CharField(blank=True, max_length=64, null=True)),
                ('detail', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='beds_audite_action_6d1b3f_idx'),
                    models.Index(fields=['object_type', 'object_id', 'created_at'], name='beds_audite_object__0a7e95_idx'),
                ],
            },
        ),
    ]
