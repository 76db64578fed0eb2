# -*- coding: utf-8 -*-
# pylint: skip-file


from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import model_utils.fields


STAGE_CHOICES = [('stage_0', '응답 대기'), ('stage_1', '시간강사 검토'), ('stage_2', '선생님 검토'), ('completed', '완료')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('academy_forms', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='SupervisionMapping',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('group_id', models.CharField(max_length=64, db_index=True)),
                ('time_teacher_id', models.CharField(max_length=64, blank=True, default='')),
                ('teacher_id', models.CharField(max_length=64, blank=True, default='')),
            ],
            options={
                'unique_together': {('group_id', 'time_teacher_id', 'teacher_id')},
            },
        ),
        migrations.CreateModel(
            name='Report',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('student_id', models.CharField(max_length=64, blank=True, db_index=True)),
                ('student_name', models.CharField(max_length=100, blank=True)),
                ('class_name', models.CharField(max_length=100, blank=True, db_index=True)),
                ('stage', models.CharField(max_length=20, choices=STAGE_CHOICES, default='stage_0', db_index=True)),
                ('stage_changed', model_utils.fields.MonitorField(default=django.utils.timezone.now, monitor='stage')),
                ('time_teacher_id', models.CharField(max_length=64, blank=True, db_index=True)),
                ('teacher_id', models.CharField(max_length=64, blank=True, db_index=True)),
                ('time_teacher_comment', models.TextField(blank=True)),
                ('teacher_comment', models.TextField(blank=True)),
                ('student_completed_at', models.DateTimeField(default=None, null=True)),
                ('time_teacher_completed_at', models.DateTimeField(default=None, null=True)),
                ('teacher_completed_at', models.DateTimeField(default=None, null=True)),
                ('rejected_at', models.DateTimeField(default=None, null=True)),
                ('rejected_by', models.CharField(max_length=64, blank=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('form', models.ForeignKey(related_name='reports', to='academy_forms.Form', on_delete=django.db.models.deletion.CASCADE)),
                ('form_response', models.ForeignKey(related_name='reports', blank=True, null=True, to='academy_forms.FormResponse', on_delete=django.db.models.deletion.SET_NULL)),
                ('supervision', models.ForeignKey(related_name='reports', blank=True, null=True, to='reports.SupervisionMapping', on_delete=django.db.models.deletion.SET_NULL)),
            ],
            options={
                'ordering': ['-created', '-id'],
                'unique_together': {('form', 'student_id')},
            },
        ),
        migrations.CreateModel(
            name='ReportHistory',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('action', models.CharField(max_length=32, choices=[('created', '생성'), ('assigned', '배정'), ('supervision_changed', '검토자 변경'), ('student_completed', '응답 완료'), ('comment_saved', '코멘트 저장'), ('review_completed', '검토 완료'), ('rejected', '반려'), ('reset', '초기화')])),
                ('performed_by', models.CharField(max_length=64, blank=True)),
                ('from_stage', models.CharField(max_length=20, choices=STAGE_CHOICES, blank=True)),
                ('to_stage', models.CharField(max_length=20, choices=STAGE_CHOICES, blank=True)),
                ('details', models.JSONField(default=dict, blank=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, db_index=True)),
                ('report', models.ForeignKey(related_name='history', to='reports.Report', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
