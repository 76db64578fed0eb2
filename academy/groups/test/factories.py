""" Factories for testing group membership models """

import factory
from factory.django import DjangoModelFactory

from academy.groups.models import ClassMember, GroupClass, GroupMember
from academy.permissions import ROLE


class GroupMemberFactory(DjangoModelFactory):
    """ Create mock GroupMember models. """
    class Meta:
        model = GroupMember

    group_id = "academy-1"
    user_id = factory.Sequence(lambda n: f'user-{n}')
    name = factory.Sequence(lambda n: f'회원{n}')
    role = ROLE.student


class GroupClassFactory(DjangoModelFactory):
    """ Create mock GroupClass models. """
    class Meta:
        model = GroupClass

    group_id = "academy-1"
    name = factory.Sequence(lambda n: f'{n}반')


class ClassMemberFactory(DjangoModelFactory):
    """ Create mock ClassMember models. """
    class Meta:
        model = ClassMember

    group_class = factory.SubFactory(GroupClassFactory)
    user_id = factory.Sequence(lambda n: f'user-{n}')
    role = ROLE.student
