from django.test import SimpleTestCase

from apps.tasks.services.access import (
    AccessResolver,
    can_comment_on_task,
    can_view_user,
    department_hierarchy_match,
    visible_users,
)
from apps.tasks.services.records import TaskRecord, UserRecord
from .fakes import FakeProjectDirectory


class DepartmentHierarchyMatchTest(SimpleTestCase):
    def test_descendant_matches(self):
        self.assertTrue(department_hierarchy_match("Sales.NA", "Sales"))
        self.assertTrue(department_hierarchy_match("Sales", "Sales"))
        self.assertTrue(department_hierarchy_match("Eng.Backend.Api", "Eng.Backend"))

    def test_prefix_without_separator_does_not_match(self):
        self.assertFalse(department_hierarchy_match("SalesOps", "Sales"))
        self.assertFalse(department_hierarchy_match("Sales", "Sales.NA"))

    def test_missing_values(self):
        self.assertFalse(department_hierarchy_match(None, "Sales"))
        self.assertFalse(department_hierarchy_match("Sales", None))
        self.assertFalse(department_hierarchy_match(None, None))
        self.assertFalse(department_hierarchy_match("Sales", ""))

    def test_equal_empty_paths_match(self):
        self.assertTrue(department_hierarchy_match("", ""))


class AccessResolverTest(SimpleTestCase):
    def setUp(self):
        self.projects = FakeProjectDirectory()
        # 1: staff user 10 is a member, 2: created by user 10,
        # 3: created by a senior sales user, 4: created by a junior sales user
        self.projects.add(1, created_by=99, members={10: "collaborator"})
        self.projects.add(2, created_by=10)
        self.projects.add(3, created_by=30, division="sales", creator_hierarchy=1)
        self.projects.add(4, created_by=40, division="sales", creator_hierarchy=5)
        self.projects.add(5, created_by=50, division="ops", creator_hierarchy=1)
        self.resolver = AccessResolver(self.projects)

    async def test_admin_sees_all_projects(self):
        ids = await self.resolver.accessible_project_ids(1, "admin")
        self.assertEqual(ids, {1, 2, 3, 4, 5})

    async def test_staff_sees_memberships_and_created(self):
        ids = await self.resolver.accessible_project_ids(10, "staff", 1, "sales")
        self.assertEqual(ids, {1, 2})

    async def test_manager_adds_same_division_lower_rank_projects(self):
        ids = await self.resolver.accessible_project_ids(20, "manager", 3, "sales")
        self.assertEqual(ids, {3})

    async def test_manager_without_division_gets_no_extra_projects(self):
        ids = await self.resolver.accessible_project_ids(20, "manager", 3, None)
        self.assertEqual(ids, set())

    async def test_staff_sees_project_task_only_when_assigned(self):
        assigned = TaskRecord(id=1, title="a", project_id=3, assigned_to=[10])
        other = TaskRecord(id=2, title="b", project_id=3, assigned_to=[11])
        personal = TaskRecord(id=3, title="c", assigned_to=[10])

        visible = await self.resolver.filter_visible_tasks([assigned, other, personal], 10, "staff")
        self.assertEqual([t.id for t in visible], [1, 3])

    async def test_admin_sees_project_task_unconditionally(self):
        task = TaskRecord(id=1, title="a", project_id=3, assigned_to=[11])
        visible = await self.resolver.filter_visible_tasks([task], 1, "admin")
        self.assertEqual(visible, [task])

    async def test_member_sees_project_tasks(self):
        task = TaskRecord(id=1, title="a", project_id=1, assigned_to=[11])
        visible = await self.resolver.filter_visible_tasks([task], 10, "staff")
        self.assertEqual(visible, [task])


class UserVisibilityTest(SimpleTestCase):
    def setUp(self):
        self.admin = UserRecord(id=1, role="admin")
        self.hr = UserRecord(id=2, role="hr", department="Sales")
        self.manager = UserRecord(id=3, role="manager", division="sales", hierarchy=3)
        self.staff = UserRecord(id=4, role="staff", department="Sales.NA", division="sales", hierarchy=1)
        self.ops = UserRecord(id=5, role="staff", department="SalesOps", division="ops", hierarchy=1)

    def test_admin_sees_everyone(self):
        self.assertTrue(can_view_user(self.admin, self.ops))

    def test_everyone_sees_themselves(self):
        self.assertTrue(can_view_user(self.staff, self.staff))

    def test_hr_sees_department_subtree(self):
        self.assertTrue(can_view_user(self.hr, self.staff))
        self.assertFalse(can_view_user(self.hr, self.ops))

    def test_manager_sees_lower_ranked_same_division(self):
        self.assertTrue(can_view_user(self.manager, self.staff))
        self.assertFalse(can_view_user(self.manager, self.ops))

    def test_staff_sees_only_themselves(self):
        everyone = [self.admin, self.hr, self.manager, self.staff, self.ops]
        self.assertEqual(visible_users(self.staff, everyone), [self.staff])


class CanCommentOnTaskTest(SimpleTestCase):
    def setUp(self):
        self.junior = UserRecord(id=1, role="staff", division="sales", hierarchy=1)
        self.peer = UserRecord(id=2, role="staff", division="sales", hierarchy=1)

    def test_admin_and_hr_comment_anywhere(self):
        self.assertTrue(can_comment_on_task(UserRecord(id=9, role="admin"), [self.junior]))
        self.assertTrue(can_comment_on_task(UserRecord(id=9, role="hr"), []))

    def test_assignee_can_comment(self):
        self.assertTrue(can_comment_on_task(self.junior, [self.junior, self.peer]))

    def test_staff_outside_the_task_cannot_comment(self):
        self.assertFalse(can_comment_on_task(self.peer, [self.junior]))

    def test_manager_comments_on_subordinate_tasks_only(self):
        manager = UserRecord(id=5, role="manager", division="sales", hierarchy=3)
        other_division = UserRecord(id=6, role="staff", division="ops", hierarchy=1)
        senior = UserRecord(id=7, role="staff", division="sales", hierarchy=4)

        self.assertTrue(can_comment_on_task(manager, [other_division, self.junior]))
        self.assertFalse(can_comment_on_task(manager, [other_division, senior]))
        self.assertFalse(can_comment_on_task(manager, []))
