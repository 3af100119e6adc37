import pytest


def test_create_course_returns_created_course(client, admin_headers) -> None:
    response = client.post(
        '/api/courses',
        headers=admin_headers,
        json={'name': ' CS101 ', 'description': 'Intro', 'duration': 12, 'instructor': 'Dr. Ada'},
    )

    assert response.status_code == 201
    course = response.json()['course']
    assert course['name'] == 'CS101'
    assert course['duration'] == '12'
    assert course['instructor'] == 'Dr. Ada'


@pytest.mark.parametrize('payload', [{}, {'name': ''}, {'name': '   '}])
def test_create_course_requires_name(client, admin_headers, payload: dict) -> None:
    response = client.post('/api/courses', headers=admin_headers, json=payload)

    assert response.status_code == 400
    assert response.json() == {'success': False, 'message': 'Course name is required'}


def test_create_course_rejects_duplicate_name(client, admin_headers, create_course) -> None:
    create_course(name='CS101')

    response = client.post('/api/courses', headers=admin_headers, json={'name': 'CS101'})

    assert response.status_code == 409
    assert response.json()['message'] == 'Course with this name already exists'


def test_list_courses_is_newest_first_with_counts(client, student_headers, create_course) -> None:
    create_course(name='First')
    create_course(name='Second')

    response = client.get('/api/courses', headers=student_headers)

    body = response.json()
    assert response.status_code == 200
    assert body['count'] == 2
    assert [course['name'] for course in body['courses']] == ['Second', 'First']
    assert all(course['student_count'] == 0 for course in body['courses'])


def test_get_course_missing_returns_404(client, student_headers) -> None:
    response = client.get('/api/courses/999', headers=student_headers)

    assert response.status_code == 404
    assert response.json() == {'success': False, 'message': 'Course not found'}


def test_student_count_only_counts_active_students(client, admin_headers, create_course, create_student) -> None:
    course = create_course(name='Physics')
    create_student('a@x.com', course_id=course['id'])
    graduate = create_student('b@x.com', course_id=course['id'])
    client.put(f"/api/students/{graduate['id']}", headers=admin_headers, json={'status': 'graduated'})

    response = client.get(f"/api/courses/{course['id']}", headers=admin_headers)

    assert response.json()['course']['student_count'] == 1


def test_enrollment_scenario_updates_student_count(client, admin_headers, create_course, create_student) -> None:
    course = create_course(name='CS101')
    student = create_student('jo@x.com', first_name='Jo', last_name='Doe', course_id=course['id'])

    assert client.get(f"/api/courses/{course['id']}", headers=admin_headers).json()['course']['student_count'] == 1

    client.delete(f"/api/students/{student['id']}", headers=admin_headers)

    assert client.get(f"/api/courses/{course['id']}", headers=admin_headers).json()['course']['student_count'] == 0


def test_unenrolled_student_does_not_change_count(client, admin_headers, create_course, create_student) -> None:
    course = create_course(name='Art')
    before = client.get(f"/api/courses/{course['id']}", headers=admin_headers).json()['course']['student_count']

    student = create_student('drifter@x.com')
    client.delete(f"/api/students/{student['id']}", headers=admin_headers)

    after = client.get(f"/api/courses/{course['id']}", headers=admin_headers).json()['course']['student_count']
    assert before == after == 0


def test_update_course_changes_fields_and_keeps_count(client, admin_headers, create_course, create_student) -> None:
    course = create_course(name='Old Name', instructor='Someone')
    create_student('s@x.com', course_id=course['id'])

    response = client.put(
        f"/api/courses/{course['id']}",
        headers=admin_headers,
        json={'name': 'New Name', 'description': 'Updated'},
    )

    assert response.status_code == 200
    updated = response.json()['course']
    assert updated['name'] == 'New Name'
    assert updated['description'] == 'Updated'
    assert updated['instructor'] == 'Someone'
    assert updated['student_count'] == 1


def test_update_course_allows_keeping_own_name(client, admin_headers, create_course) -> None:
    course = create_course(name='Same')

    response = client.put(f"/api/courses/{course['id']}", headers=admin_headers, json={'name': 'Same'})

    assert response.status_code == 200


def test_update_course_rejects_name_of_other_course(client, admin_headers, create_course) -> None:
    create_course(name='Taken')
    course = create_course(name='Mine')

    response = client.put(f"/api/courses/{course['id']}", headers=admin_headers, json={'name': 'Taken'})

    assert response.status_code == 409
    assert response.json()['message'] == 'Another course with this name already exists'


def test_update_course_rejects_blank_name(client, admin_headers, create_course) -> None:
    course = create_course(name='Named')

    response = client.put(f"/api/courses/{course['id']}", headers=admin_headers, json={'name': ' '})

    assert response.status_code == 400


def test_update_missing_course_returns_404(client, admin_headers) -> None:
    response = client.put('/api/courses/404', headers=admin_headers, json={'name': 'Nope'})

    assert response.status_code == 404


def test_delete_course_blocked_while_students_enrolled(client, admin_headers, create_course, create_student) -> None:
    course = create_course(name='Busy')
    create_student('one@x.com', course_id=course['id'])
    create_student('two@x.com', course_id=course['id'])

    response = client.delete(f"/api/courses/{course['id']}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {
        'success': False,
        'message': 'Cannot delete course. 2 student(s) are enrolled. Please reassign or remove students first.',
    }
    assert client.get(f"/api/courses/{course['id']}", headers=admin_headers).status_code == 200


def test_delete_course_blocked_by_inactive_students_too(client, admin_headers, create_course, create_student) -> None:
    course = create_course(name='Quiet')
    student = create_student('idle@x.com', course_id=course['id'])
    client.put(f"/api/students/{student['id']}", headers=admin_headers, json={'status': 'inactive'})

    response = client.delete(f"/api/courses/{course['id']}", headers=admin_headers)

    assert response.status_code == 400


def test_delete_empty_course_makes_it_unfetchable(client, admin_headers, create_course) -> None:
    course = create_course(name='Empty')

    response = client.delete(f"/api/courses/{course['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {'success': True, 'message': 'Course deleted successfully'}
    assert client.get(f"/api/courses/{course['id']}", headers=admin_headers).status_code == 404


def test_delete_missing_course_returns_404(client, admin_headers) -> None:
    assert client.delete('/api/courses/12345', headers=admin_headers).status_code == 404


def test_list_students_in_course_orders_by_name(client, admin_headers, create_course, create_student) -> None:
    course = create_course(name='Roster')
    create_student('z@x.com', first_name='Zed', last_name='Alpha', course_id=course['id'])
    create_student('a2@x.com', first_name='Amy', last_name='Zulu', course_id=course['id'])
    create_student('a1@x.com', first_name='Amy', last_name='Baker', course_id=course['id'])
    create_student('other@x.com', first_name='Out', last_name='Sider')

    response = client.get(f"/api/courses/{course['id']}/students", headers=admin_headers)

    body = response.json()
    assert body['course']['name'] == 'Roster'
    assert body['studentCount'] == 3
    assert [(s['first_name'], s['last_name']) for s in body['students']] == [
        ('Amy', 'Baker'),
        ('Amy', 'Zulu'),
        ('Zed', 'Alpha'),
    ]


def test_list_students_in_missing_course_returns_404(client, admin_headers) -> None:
    assert client.get('/api/courses/77/students', headers=admin_headers).status_code == 404


def test_course_stats_aggregates_by_status(client, admin_headers, create_course, create_student) -> None:
    small = create_course(name='Small')
    big = create_course(name='Big')
    create_course(name='Unused')
    create_student('b1@x.com', course_id=big['id'])
    create_student('b2@x.com', course_id=big['id'])
    grad = create_student('s1@x.com', course_id=small['id'])
    client.put(f"/api/students/{grad['id']}", headers=admin_headers, json={'status': 'graduated'})

    response = client.get('/api/courses/admin/stats', headers=admin_headers)

    body = response.json()
    assert response.status_code == 200
    assert body['statistics'] == {
        'total_courses': 3,
        'total_students': 3,
        'active_students': 2,
        'graduated_students': 1,
        'inactive_students': 0,
    }
    distribution = body['courseDistribution']
    assert [entry['name'] for entry in distribution] == ['Big', 'Small', 'Unused']
    assert distribution[0]['student_count'] == 2
    assert distribution[1] == {'id': small['id'], 'name': 'Small', 'student_count': 1, 'active_count': 0}
