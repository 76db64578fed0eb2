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
            name='GroupMember',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('group_id', models.CharField(max_length=64, db_index=True)),
                ('user_id', models.CharField(max_length=64, db_index=True)),
                ('name', models.CharField(max_length=100, blank=True)),
                ('role', models.CharField(max_length=20, choices=[('admin', '관리자'), ('teacher', '선생님'), ('part_time', '시간강사'), ('student', '학생')])),
            ],
            options={
                'ordering': ['group_id', 'name'],
                'unique_together': {('group_id', 'user_id')},
            },
        ),
        migrations.CreateModel(
            name='GroupClass',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('group_id', models.CharField(max_length=64, db_index=True)),
                ('name', models.CharField(max_length=100)),
            ],
            options={
                'ordering': ['group_id', 'name'],
            },
        ),
        migrations.CreateModel(
            name='ClassMember',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('user_id', models.CharField(max_length=64, db_index=True)),
                ('role', models.CharField(max_length=20, choices=[('admin', '관리자'), ('teacher', '선생님'), ('part_time', '시간강사'), ('student', '학생')])),
                ('group_class', models.ForeignKey(related_name='members', to='groups.GroupClass', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'unique_together': {('group_class', 'user_id')},
            },
        ),
    ]
