# -*- coding: utf-8 -*-
# pylint: skip-file


from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import model_utils.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='ConceptTemplate',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('status', model_utils.fields.StatusField(default='draft', max_length=100, verbose_name='status', no_check_for_status=True, choices=[('draft', '작성 중'), ('completed', '완료')])),
                ('status_changed', model_utils.fields.MonitorField(default=django.utils.timezone.now, verbose_name='status changed', monitor='status')),
                ('name', models.CharField(max_length=255)),
                ('group_id', models.CharField(max_length=64, db_index=True)),
                ('creator_id', models.CharField(max_length=64)),
                ('concept_count', models.PositiveIntegerField(default=0)),
            ],
            options={
                'ordering': ['-created', '-id'],
            },
        ),
        migrations.CreateModel(
            name='ConceptTemplateItem',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('text', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('order_index', models.PositiveIntegerField()),
                ('template', models.ForeignKey(related_name='items', to='academy_forms.ConceptTemplate', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['template', 'order_index'],
            },
        ),
        migrations.CreateModel(
            name='Form',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('status', model_utils.fields.StatusField(default='draft', max_length=100, no_check_for_status=True, choices=[('draft', '임시저장'), ('save', '저장됨'), ('send', '전송됨')])),
                ('status_changed', model_utils.fields.MonitorField(default=django.utils.timezone.now, monitor='status')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('group_id', models.CharField(max_length=64, db_index=True)),
                ('creator_id', models.CharField(max_length=64)),
                ('time_teacher_id', models.CharField(max_length=64, blank=True)),
                ('teacher_id', models.CharField(max_length=64, blank=True)),
                ('sent_at', models.DateTimeField(default=None, null=True)),
            ],
            options={
                'ordering': ['-created', '-id'],
            },
        ),
        migrations.CreateModel(
            name='Question',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('order_index', models.PositiveIntegerField()),
                ('question_type', models.CharField(max_length=20, choices=[('text', '텍스트'), ('rating', '별점'), ('choice', '선택형'), ('exam', '시험')])),
                ('question_text', models.TextField(blank=True)),
                ('is_required', models.BooleanField(default=False)),
                ('config', models.JSONField(default=dict)),
                ('concept_template', models.ForeignKey(related_name='questions', blank=True, null=True, to='academy_forms.ConceptTemplate', on_delete=django.db.models.deletion.PROTECT)),
                ('form', models.ForeignKey(related_name='questions', to='academy_forms.Form', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['form', 'order_index'],
            },
        ),
        migrations.CreateModel(
            name='FormTarget',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('target_type', models.CharField(max_length=20, choices=[('class', '반'), ('individual', '개인')])),
                ('target_id', models.CharField(max_length=64)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('form', models.ForeignKey(related_name='targets', to='academy_forms.Form', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['form', 'id'],
                'unique_together': {('form', 'target_type', 'target_id')},
            },
        ),
        migrations.CreateModel(
            name='FormResponse',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('student_id', models.CharField(max_length=64, db_index=True)),
                ('answers', models.JSONField(default=dict)),
                ('submitted_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('form', models.ForeignKey(related_name='responses', to='academy_forms.Form', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['-submitted_at', '-id'],
                'unique_together': {('form', 'student_id')},
            },
        ),
    ]
